from rest_framework import serializers
from .models import User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Compact account view embedded in other resources (requester, approver).
    """
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'mobile']


class MeSerializer(serializers.ModelSerializer):
    isAdmin = serializers.BooleanField(source='is_admin', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'mobile', 'role', 'isAdmin']
        read_only_fields = ['id', 'email', 'role']
