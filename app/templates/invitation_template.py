"""
Campaign invitation email template
Plain text format
"""
from typing import Optional
from app.config import settings


ROLE_LABELS = {
    'co-gm': 'Co-GM',
    'viewer': 'Viewer'
}


def get_invitation_email_body(
    invitee_email: str,
    campaign_name: Optional[str],
    role: str,
    accept_url: str,
    invited_by_name: Optional[str] = None
) -> str:
    """
    Generate plain text invitation email body

    Args:
        invitee_email: Email of the person being invited
        campaign_name: Name of the campaign
        role: Campaign role being granted (co-gm, viewer)
        accept_url: URL to accept the invitation
        invited_by_name: Name of the person sending the invitation

    Returns:
        Plain text email body
    """
    campaign_label = campaign_name or 'a campaign'
    role_label = ROLE_LABELS.get(role, role)
    inviter = invited_by_name or 'A game master'

    text_body = f"""Hi!

{inviter} invited you to join {campaign_label}.

INVITATION DETAILS
--------------------
Campaign: {campaign_label}
Role: {role_label}
Your email: {invitee_email}

ACCEPT INVITATION
--------------------
Sign in with this email address and open the link below:
{accept_url}

IMPORTANT
--------------------
- This invitation expires in {settings.invitation_expiry_days} days
- If you don't have an account yet, signing up with this email will add you to the campaign
- If you weren't expecting this, you can ignore this email

----
{settings.email_signature}
"""

    return text_body


def get_invitation_subject(campaign_name: Optional[str]) -> str:
    """Generate email subject for invitation"""
    return f"Invitation to join {campaign_name or 'a campaign'}"
