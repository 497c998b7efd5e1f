"""Heartbeat.chat credential specification."""

from .base import CredentialSpec

HEARTBEAT_CREDENTIALS = {
    "heartbeat": CredentialSpec(
        env_var="HEARTBEAT_API_KEY",
        tools=["heartbeat"],
        required=True,
        startup_required=True,
        help_url="https://heartbeat.chat",
        description="Heartbeat.chat community API key (bearer token)",
        api_key_instructions="""To get a Heartbeat API key:
1. Sign in to your community as an admin
2. Open Settings > API
3. Create a new API key and copy it
4. Export it as HEARTBEAT_API_KEY""",
        health_check_endpoint="https://api.heartbeat.chat/v0/channels",
        health_check_method="GET",
    ),
}
