# users/views/me.py

from drf_spectacular.utils import extend_schema
from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import capabilities_for
from users.models import User


class MeSerializer(serializers.ModelSerializer):
    """
    Profile of the signed-in user plus the capabilities the storefront UI
    uses to decide which actions to show (checkout, order management, ...).
    """

    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "name", "phone", "role", "capabilities"]
        read_only_fields = fields

    def get_capabilities(self, obj) -> list[str]:
        return sorted(capabilities_for(obj))


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MeSerializer

    @extend_schema(
        responses={200: MeSerializer},
        description="Current user profile and capabilities",
    )
    def get(self, request):
        return Response(MeSerializer(request.user).data)
