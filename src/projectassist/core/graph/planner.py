from __future__ import annotations

from projectassist.core.graph.client import GraphClient, quote_segment


class GraphPlannerConnector:
    def __init__(self, client: GraphClient | None = None) -> None:
        self.client = client or GraphClient()

    def list_my_tasks(self, access_token: str) -> list[dict]:
        return self.client.get_collection(access_token, "me/planner/tasks", params={"$expand": "details"})

    def list_user_tasks(self, access_token: str, email: str) -> list[dict]:
        return self.client.get_collection(
            access_token,
            f"users/{quote_segment(email)}/planner/tasks",
            params={"$expand": "details"},
        )

    def find_user_by_email(self, access_token: str, email: str) -> dict | None:
        literal = email.replace("'", "''")
        payload = self.client.get(
            access_token,
            "users",
            params={
                "$filter": f"mail eq '{literal}' or userPrincipalName eq '{literal}'",
                "$top": "1",
            },
        )
        users = [item for item in payload.get("value") or [] if isinstance(item, dict)]
        return users[0] if users else None

    def list_my_plans(self, access_token: str) -> list[dict]:
        return self.client.get_collection(access_token, "me/planner/plans")

    def list_plan_buckets(self, access_token: str, plan_id: str) -> list[dict]:
        return self.client.get_collection(access_token, f"planner/plans/{quote_segment(plan_id)}/buckets")

    def create_task(self, access_token: str, plan_id: str, bucket_id: str, title: str) -> dict:
        return self.client.post(
            access_token,
            "planner/tasks",
            {"planId": plan_id, "bucketId": bucket_id, "title": title},
        )
