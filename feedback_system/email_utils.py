import smtplib
import asyncio
from email.message import EmailMessage
import logging

from feedback_system.config import mail_conf
from feedback_system.schemas import FeedbackRead
from feedback_system.utils import format_datetime

logger = logging.getLogger(__name__)

# Tried in order when SMTP_PORT is not pinned
PORT_CONFIGS = [
    (465, True),   # Port 465 with SSL
    (587, False),  # Port 587 with STARTTLS
]


def _port_configs():
    if mail_conf.SMTP_PORT:
        return [(mail_conf.SMTP_PORT, mail_conf.SMTP_PORT == 465)]
    return PORT_CONFIGS


def _stars(rating: int) -> str:
    return "★" * rating + "☆" * (5 - rating)


async def send_new_feedback_notification(feedback: FeedbackRead) -> bool:
    """Tell the site admin that new feedback arrived."""
    if not mail_conf.ADMIN_EMAIL:
        logger.info("ADMIN_EMAIL not set. Skipping new feedback notification.")
        return False
    subject = f"New Feedback Received - {feedback.category}"
    body = (
        "New feedback was submitted.\n\n"
        f"Name: {feedback.name}\n"
        f"Email: {feedback.email}\n"
        f"Category: {feedback.category}\n"
        f"Rating: {_stars(feedback.rating)} ({feedback.rating}/5)\n"
        f"Submitted: {format_datetime(feedback.created_at)}\n\n"
        f"{feedback.message}\n\n"
        f"View in dashboard: {mail_conf.APP_URL}/admin"
    )
    return await _send_email(mail_conf.ADMIN_EMAIL, subject, body)


async def send_feedback_approved_notification(feedback: FeedbackRead) -> bool:
    subject = "Your Feedback Has Been Approved"
    body = (
        f"Dear {feedback.name},\n\n"
        "Thank you for your feedback! It has been reviewed and approved.\n\n"
        f"Category: {feedback.category}\n"
        f"Rating: {_stars(feedback.rating)}\n"
        f"Your message: \"{feedback.message}\"\n\n"
        "We appreciate your input and will use it to improve our services.\n\n"
        "Best regards,\n"
        "The Team"
    )
    return await _send_email(feedback.email, subject, body)


async def send_feedback_rejected_notification(feedback: FeedbackRead) -> bool:
    subject = "Regarding Your Recent Feedback"
    body = (
        f"Dear {feedback.name},\n\n"
        "Thank you for taking the time to submit your feedback. After review, "
        "we've determined that it doesn't meet our current guidelines.\n\n"
        f"Category: {feedback.category}\n"
        f"Submitted: {feedback.created_at.strftime('%Y-%m-%d')}\n\n"
        "If you have questions or would like to submit revised feedback, please contact us.\n\n"
        "Best regards,\n"
        "The Team"
    )
    return await _send_email(feedback.email, subject, body)


async def send_status_notification(feedback: FeedbackRead) -> bool:
    if feedback.status == "approved":
        return await send_feedback_approved_notification(feedback)
    if feedback.status == "rejected":
        return await send_feedback_rejected_notification(feedback)
    return False


async def _send_email(to_email: str, subject: str, body: str, debug_level: int = 0) -> bool:
    """Send one plain-text email, trying each port configuration in turn."""
    if not mail_conf.configured:
        logger.info("Email service not configured. Skipping email notification.")
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"Feedback System <{mail_conf.EMAIL_FROM or mail_conf.SMTP_USER}>"
    msg["To"] = to_email
    msg.set_content(body)

    def _send():
        last_exception = None

        for port, use_ssl in _port_configs():
            try:
                logger.info(f"Attempting to send email to {to_email} via port {port} (SSL: {use_ssl})")
                if use_ssl:
                    with smtplib.SMTP_SSL(mail_conf.SMTP_HOST, port, timeout=30) as server:
                        server.set_debuglevel(debug_level)
                        server.login(mail_conf.SMTP_USER, mail_conf.SMTP_PASS)
                        server.send_message(msg)
                else:
                    with smtplib.SMTP(mail_conf.SMTP_HOST, port, timeout=30) as server:
                        server.set_debuglevel(debug_level)
                        server.starttls()
                        server.login(mail_conf.SMTP_USER, mail_conf.SMTP_PASS)
                        server.send_message(msg)
                logger.info(f"Email sent successfully via port {port}")
                return
            except Exception as e:
                last_exception = e
                logger.warning(f"Failed to send via port {port}: {e}")

        if last_exception:
            logger.error(f"All SMTP port configurations failed. Last error: {last_exception}")
            raise last_exception

    try:
        await asyncio.to_thread(_send)
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {str(e)}")
        return False
