from __future__ import annotations

from projectassist.core.graph.client import GraphClient, quote_segment


class GraphMailConnector:
    def __init__(self, client: GraphClient | None = None) -> None:
        self.client = client or GraphClient()

    def send_mail(
        self,
        access_token: str,
        to_address: str,
        subject: str,
        body: str,
        sender: str | None = None,
    ) -> None:
        path = f"users/{quote_segment(sender)}/sendMail" if sender else "me/sendMail"
        self.client.post(
            access_token,
            path,
            {
                "message": {
                    "subject": subject,
                    "body": {"contentType": "HTML", "content": body},
                    "toRecipients": [{"emailAddress": {"address": to_address}}],
                },
                "saveToSentItems": True,
            },
        )
