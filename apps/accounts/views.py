from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated

from apps.utils.responses import api_response
from .serializers import MeSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response("User details", MeSerializer(request.user).data)
