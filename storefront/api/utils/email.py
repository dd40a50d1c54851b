from flask_mail import Message
from storefront.extensions import mail


def send_email(subject, recipients, body=None, html=None, sender=None, reply_to=None):
    """
    Send a UTF-8 e-mail, plain text, HTML or both.
    Flask-Mail builds the MIME parts and charset itself.
    """
    if isinstance(recipients, str):
        recipients = [recipients]

    msg = Message(
        subject=subject or "",
        recipients=list(recipients or []),
        body=body,
        html=html,
        sender=sender,
        reply_to=reply_to,
    )
    msg.charset = "utf-8"

    mail.send(msg)
    return msg
