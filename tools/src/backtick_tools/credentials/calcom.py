"""
Cal.com tool credentials.

Contains credentials for Cal.com scheduling API integration.
"""

from .base import CredentialSpec

CALCOM_CREDENTIALS = {
    "calcom": CredentialSpec(
        env_var="CALCOM_API_TOKEN",
        tools=[
            "calcom_list_booking_options",
            "calcom_get_slots_for_option",
            "calcom_get_available_slots",
        ],
        required=True,
        startup_required=False,
        help_url="https://cal.com/docs/api-reference/v2/introduction",
        description="Cal.com API token for reading event types and open slots",
        api_key_instructions="""To get a Cal.com API token:
1. Log in to Cal.com
2. Go to Settings > Developer > API Keys
3. Click "Create new API key"
4. Copy the key (shown only once) into CALCOM_API_TOKEN""",
    ),
}
