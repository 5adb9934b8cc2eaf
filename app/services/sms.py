from __future__ import annotations

import asyncio
import logging
import random
import re
import string
import time
from typing import Optional

from twilio.rest import Client

from app.config import Settings
from app.schemas.sms import GroupGiftResult, SMSMessage, SMSResult

logger = logging.getLogger(__name__)

_VALID_E164 = re.compile(r"^\+\d{11,15}$")


def normalize_phone_number(phone: str) -> str:
    """Formats a phone number as +<country code><digits>, assuming US for bare 10-digit numbers."""
    digits = re.sub(r"\D", "", phone)

    if len(digits) == 10:
        return f"+1{digits}"

    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"

    if phone.startswith("+"):
        return phone

    return f"+{digits}"


def is_valid_phone_number(phone: str) -> bool:
    return bool(_VALID_E164.match(normalize_phone_number(phone)))


class SmsService:
    """
    Outbound SMS via Twilio. Missing or test credentials (SID starting with
    "ACtest") switch the service to mock mode, where messages are only logged
    and a delivered receipt is synthesized.
    """

    def __init__(self, settings: Settings, client: Optional[Client] = None):
        account_sid = settings.twilio_account_sid
        auth_token = settings.twilio_auth_token
        self.from_number = settings.twilio_phone_number

        is_test_credentials = bool(account_sid) and account_sid.startswith("ACtest")
        self.use_mock = client is None and (not account_sid or not auth_token or is_test_credentials)

        if self.use_mock:
            logger.info("Using MOCK SMS service (test credentials or not configured)")
            self.client = None
        else:
            self.client = client or Client(account_sid, auth_token)
            logger.info("Twilio SMS service initialized with real credentials")

    async def send_sms(self, to: str, body: str) -> SMSResult:
        formatted_to = normalize_phone_number(to)

        if self.use_mock or self.client is None:
            logger.info("[MOCK SMS] to=%s from=%s body=%r", formatted_to, self.from_number, body)
            suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
            return SMSResult(
                sid=f"mock_sms_{int(time.time() * 1000)}_{suffix}",
                status="delivered",
                to=formatted_to,
                from_number=self.from_number,
                body=body,
                mock=True,
            )

        try:
            message = await asyncio.to_thread(
                self.client.messages.create,
                body=body,
                from_=self.from_number,
                to=formatted_to,
            )
        except Exception as e:
            logger.error(f"Failed to send SMS to {formatted_to}: {e}")
            raise

        logger.info(f"SMS sent: {message.sid}")
        return SMSResult(
            sid=message.sid,
            status=str(message.status),
            to=message.to,
            from_number=message.from_,
            body=message.body,
        )

    async def send_gift_link(self, recipient_phone: str, gift_url: str, sender_name: Optional[str] = None) -> SMSResult:
        if sender_name:
            message = f"🎁 {sender_name} sent you a gift! Open it here: {gift_url}"
        else:
            message = f"🎁 You've received a gift! Open it here: {gift_url}"
        return await self.send_sms(recipient_phone, message)

    async def send_group_gift_notification(
        self,
        recipient_phone: str,
        viewer_phones: list[str],
        gift_url: str,
        sender_name: Optional[str] = None,
    ) -> GroupGiftResult:
        if sender_name:
            recipient_message = f"🎉 {sender_name} and friends sent you a group gift! {gift_url}"
        else:
            recipient_message = f"🎉 You've received a group gift from friends! {gift_url}"
        recipient_result = await self.send_sms(recipient_phone, recipient_message)

        viewer_message = "🎁 Your group gift has been sent! The recipient will love it."
        viewer_results = await asyncio.gather(
            *(self.send_sms(phone, viewer_message) for phone in viewer_phones)
        )
        return GroupGiftResult(recipient=recipient_result, viewers=list(viewer_results))

    async def send_viewer_invitation(
        self,
        viewer_phone: str,
        invitation_url: str,
        sender_name: str,
        recipient_name: str,
    ) -> SMSResult:
        message = (
            f"🎁 {sender_name} invited you to contribute to a group gift for {recipient_name}! "
            f"Join here: {invitation_url}"
        )
        return await self.send_sms(viewer_phone, message)

    async def send_viewer_message(self, recipient_phone: str, viewer_name: str, message: str) -> SMSResult:
        return await self.send_sms(recipient_phone, f"💌 Message from {viewer_name}: {message}")

    async def send_verification_code(self, phone_number: str, code: str) -> SMSResult:
        message = f"Your Pop Gifts verification code is: {code}. Valid for 5 minutes."
        return await self.send_sms(phone_number, message)

    async def send_batch(self, messages: list[SMSMessage]) -> list[SMSResult]:
        results = await asyncio.gather(*(self.send_sms(m.to, m.body) for m in messages))
        return list(results)

    async def get_message_status(self, message_sid: str) -> str:
        if self.client is None:
            return "sent"

        try:
            message = await asyncio.to_thread(self.client.messages(message_sid).fetch)
        except Exception as e:
            logger.error(f"Failed to fetch message status for {message_sid}: {e}")
            raise
        return str(message.status)
