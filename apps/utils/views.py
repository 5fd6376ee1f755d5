# apps/utils/views.py
from rest_framework.views import APIView
from rest_framework.permissions import AllowAny
from django.conf import settings

from .responses import api_response


class ServerInfoView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return api_response("Server info", {
            "app_name": settings.PROJECT_NAME,
            "version": settings.SPECTACULAR_SETTINGS["VERSION"],
            "debug": settings.DEBUG,
        })
