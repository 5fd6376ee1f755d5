from rest_framework import status as http_status
from rest_framework.response import Response


def api_response(message, data=None, status=http_status.HTTP_200_OK):
    """
    Success envelope shared by every JSON endpoint:
    {"message": ..., "data": ..., "error": false, "success": true}
    """
    body = {"message": message, "error": False, "success": True}
    if data is not None:
        body["data"] = data
    return Response(body, status=status)
