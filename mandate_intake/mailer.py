"""
Notification emails over SMTP.

Delivery is best effort: if SMTP is not configured or the server refuses
the message, the failure is logged and `send` returns False.
"""

import logging
import smtplib
from datetime import datetime
from email.errors import MessageError
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from . import config

logger = logging.getLogger("intake.mailer")

HEADER_STYLE = "background-color: #0b0d10; color: #c9a24d; padding: 20px; text-align: center;"
LABEL_STYLE = "padding: 10px 0; font-weight: bold; color: #555;"
CELL_STYLE = "padding: 10px 0;"
BLOCK_STYLE = "background-color: #f9f9f9; padding: 15px; border-left: 4px solid #c9a24d;"


class Mailer:
    """SMTP sender. Implicit TLS when `secure`, STARTTLS otherwise."""

    def __init__(self, host: str, port: int, user: str, password: str,
                 secure: bool = True, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.secure = secure
        self.timeout = timeout

    @classmethod
    def from_config(cls) -> "Mailer":
        return cls(
            host=config.MAIL_HOST,
            port=config.MAIL_PORT,
            user=config.MAIL_USER,
            password=config.MAIL_PASSWORD,
            secure=config.MAIL_SECURE,
            timeout=config.MAIL_TIMEOUT,
        )

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def _connect(self) -> smtplib.SMTP:
        if self.secure:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        server.starttls()
        return server

    def send(self, msg: MIMEMultipart) -> bool:
        """
        Send a prepared message. Returns True if the server accepted it.
        """
        subject = msg["Subject"]
        if not self.is_configured():
            logger.warning("[MAIL NOT SENT - SMTP NOT CONFIGURED] %s", subject)
            return False

        try:
            server = self._connect()
            try:
                server.login(self.user, self.password)
                server.sendmail(msg["From"], [msg["To"]], msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, MessageError, OSError) as e:
            logger.error("[MAIL FAILED] %s: %s", subject, e)
            return False

        logger.info("[MAIL SENT] %s -> %s", subject, msg["To"])
        return True


def _format_time(received_at: datetime) -> str:
    return received_at.strftime("%Y-%m-%d %H:%M:%S")


def _row(label: str, value_html: str) -> str:
    return (
        '<tr style="border-bottom: 1px solid #eee;">'
        f'<td style="{LABEL_STYLE}">{label}</td>'
        f'<td style="{CELL_STYLE}">{value_html}</td>'
        '</tr>'
    )


def _page(title: str, body: str, sent: str) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f5f5f5;">
  <div style="{HEADER_STYLE}">
    <h2 style="margin: 0;">{title}</h2>
  </div>
  <div style="background-color: white; padding: 30px; margin-top: 20px; border: 1px solid #ddd;">
    {body}
    <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee; color: #888; font-size: 12px;">
      <p>Envoyé le {sent}</p>
    </div>
  </div>
</div>
"""


def build_mandate_notification(
    identifier: str,
    encrypted_data: str,
    signature_png: bytes,
    received_at: datetime,
    sender: Optional[str] = None,
    recipient: Optional[str] = None
) -> MIMEMultipart:
    """
    Build the notification for a received mandate.

    The signature is embedded inline as cid:signature_<identifier> and also
    offered as a PNG attachment.
    """
    when = _format_time(received_at)
    cid = f"signature_{identifier}"
    filename = f"signature_{identifier}.png"

    text = f"""Nouveau mandat client reçu

Identifiant: {identifier}
Date de réception: {when}

---
Données chiffrées:
{encrypted_data}

---
Signature: voir la pièce jointe PNG ({filename}), fond transparent.
"""

    table = (
        '<table style="width: 100%; border-collapse: collapse;">'
        + _row("Identifiant:", f'<span style="font-family: monospace;">{escape(identifier)}</span>')
        + _row("Date de réception:", escape(when))
        + _row("Statut:", "Enregistré")
        + '</table>'
    )
    body = f"""
    <h3 style="color: #0b0d10; margin-top: 0;">Informations du mandat</h3>
    {table}
    <div style="margin-top: 30px;">
      <h3 style="color: #0b0d10;">Données chiffrées:</h3>
      <div style="{BLOCK_STYLE} font-family: monospace; font-size: 11px; white-space: pre-wrap; word-wrap: break-word;">{escape(encrypted_data)}</div>
    </div>
    <div style="margin-top: 30px;">
      <h3 style="color: #0b0d10;">Signature:</h3>
      <div style="{BLOCK_STYLE}">
        <img src="cid:{escape(cid)}" alt="Signature" style="max-width: 100%; height: auto; border: 1px solid #ddd;" />
      </div>
    </div>
    <div style="margin-top: 30px; padding: 15px; background-color: #fff3cd; border-left: 4px solid #ffc107;">
      <p style="margin: 0; color: #856404;"><strong>Note:</strong> Les données du formulaire sont chiffrées. Utilisez la clé privée pour les déchiffrer.</p>
    </div>"""

    msg = MIMEMultipart("related")
    msg["Subject"] = f"Nouveau Mandat Client Reçu - {identifier}"
    msg["From"] = sender or config.MANDATE_MAIL_FROM
    msg["To"] = recipient or config.MANDATE_MAIL_TO

    alternative = MIMEMultipart("alternative")
    alternative.attach(MIMEText(text, "plain", "utf-8"))
    alternative.attach(MIMEText(_page("Nouveau Mandat Client", body, escape(when)), "html", "utf-8"))
    msg.attach(alternative)

    image = MIMEImage(signature_png, "png")
    image.add_header("Content-ID", f"<{cid}>")
    image.add_header("Content-Disposition", "attachment", filename=filename)
    msg.attach(image)
    return msg


def build_contact_notification(
    nom: str,
    email: str,
    telephone: str,
    message: Optional[str],
    received_at: datetime,
    sender: Optional[str] = None,
    recipient: Optional[str] = None
) -> MIMEMultipart:
    """Build the notification for a contact form message. All values are escaped."""
    when = _format_time(received_at)

    text = f"""Nouveau message de contact

Nom: {nom}
Email: {email}
Téléphone: {telephone}

Message:
{message or '(Aucun message fourni)'}
"""

    table = (
        '<table style="width: 100%; border-collapse: collapse;">'
        + _row("Nom:", escape(nom))
        + _row("Email:", f'<a href="mailto:{escape(email)}" style="color: #c9a24d;">{escape(email)}</a>')
        + _row("Téléphone:", f'<a href="tel:{escape(telephone)}" style="color: #c9a24d;">{escape(telephone)}</a>')
        + '</table>'
    )
    body = f'<h3 style="color: #0b0d10; margin-top: 0;">Informations du contact</h3>{table}'
    if message:
        body += f"""
    <div style="margin-top: 30px;">
      <h3 style="color: #0b0d10;">Message:</h3>
      <div style="{BLOCK_STYLE} white-space: pre-wrap;">{escape(message)}</div>
    </div>"""

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"Nouveau contact - {nom}"
    msg["From"] = sender or config.MAIL_FROM
    msg["To"] = recipient or config.MAIL_TO
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(_page("Nouveau Contact", body, escape(when)), "html", "utf-8"))
    return msg
