from __future__ import annotations

import logging
import os

from projectassist.core.graph.base import MailConnector
from projectassist.core.http.errors import ProjectAssistHTTPError
from projectassist.core.operations.base import OperationContext, OperationInput, OperationResult
from projectassist.core.operations.errors import InvalidArgument

logger = logging.getLogger(__name__)


class SendNotificationInput(OperationInput):
    to_address: str = ""
    subject: str = ""
    body: str = ""


class SendNotificationOperation:
    name = "send_notification"
    description = "Send an email notification. Recipient address, subject and body are all required."
    input_model = SendNotificationInput

    def __init__(self, connector: MailConnector, sender: str | None = None) -> None:
        self.connector = connector
        self.sender = sender if sender is not None else (os.getenv("PROJECTASSIST_MAIL_SENDER") or None)

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = SendNotificationInput.model_validate_json(arguments)
        return OperationResult.of(self.send(context.access_token, payload.to_address, payload.subject, payload.body))

    def send(self, access_token: str, to_address: str, subject: str, body: str) -> bool:
        for field_name, value in (("to_address", to_address), ("subject", subject), ("body", body)):
            if not value or not value.strip():
                raise InvalidArgument(f"{field_name} cannot be empty")
        if not access_token or not access_token.strip():
            raise InvalidArgument("access_token cannot be empty")

        try:
            self.connector.send_mail(access_token, to_address.strip(), subject, body, sender=self.sender)
        except ProjectAssistHTTPError as exc:
            logger.warning("Mail send failed: %s", exc)
            return False
        return True
