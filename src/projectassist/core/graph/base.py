from __future__ import annotations

from typing import Protocol


class PlannerConnector(Protocol):
    def list_my_tasks(self, access_token: str) -> list[dict]: ...

    def list_user_tasks(self, access_token: str, email: str) -> list[dict]: ...

    def find_user_by_email(self, access_token: str, email: str) -> dict | None: ...

    def list_my_plans(self, access_token: str) -> list[dict]: ...

    def list_plan_buckets(self, access_token: str, plan_id: str) -> list[dict]: ...

    def create_task(self, access_token: str, plan_id: str, bucket_id: str, title: str) -> dict: ...


class MailConnector(Protocol):
    def send_mail(
        self,
        access_token: str,
        to_address: str,
        subject: str,
        body: str,
        sender: str | None = None,
    ) -> None: ...
