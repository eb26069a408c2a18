import asyncio
import logging
from typing import Optional
import boto3
from botocore.exceptions import ClientError
from app.config import settings
from app.templates.invitation_template import get_invitation_email_body, get_invitation_subject

logger = logging.getLogger(__name__)


def get_ses_client():
    """Get AWS SES client"""
    return boto3.client(
        'ses',
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key
    )


def build_invitation_url(token: str) -> str:
    """Path-style accept link for direct invitations"""
    return f"{settings.frontend_url.rstrip('/')}/invite/{token}"


async def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: Optional[str] = None
) -> bool:
    """Send email via AWS SES. Never raises; returns False when the email was not sent."""
    if not settings.email_enabled:
        logger.info(f"Email not configured, skipping email to {to_email}")
        return False

    try:
        client = get_ses_client()

        message = {
            'Subject': {'Data': subject, 'Charset': 'UTF-8'},
            'Body': {
                'Text': {'Data': text_body, 'Charset': 'UTF-8'}
            }
        }

        if html_body:
            message['Body']['Html'] = {'Data': html_body, 'Charset': 'UTF-8'}

        # boto3 is blocking; keep the event loop free while SES answers
        response = await asyncio.to_thread(
            client.send_email,
            Source=f"{settings.aws_ses_from_name} <{settings.aws_ses_from_email}>",
            Destination={'ToAddresses': [to_email]},
            Message=message
        )

        logger.info(f"Email sent to {to_email}: {response['MessageId']}")
        return True

    except ClientError as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False
    except Exception as e:
        logger.error(f"Error sending email to {to_email}: {e}")
        return False


async def send_invitation_email(
    email: str,
    token: str,
    campaign_name: Optional[str],
    role: str,
    invited_by_name: Optional[str] = None
) -> bool:
    """Send a campaign invitation email (best effort)"""
    accept_url = build_invitation_url(token)

    body = get_invitation_email_body(
        invitee_email=email,
        campaign_name=campaign_name,
        role=role,
        accept_url=accept_url,
        invited_by_name=invited_by_name
    )

    return await send_email(
        to_email=email,
        subject=get_invitation_subject(campaign_name),
        text_body=body
    )
