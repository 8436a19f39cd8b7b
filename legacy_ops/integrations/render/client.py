"""Render API client.

Manages the services the business runs on Render: web services, static
sites, Postgres and Key Value instances, deploys, env vars, logs and metrics.
"""

import logging
import re
from typing import Any

import httpx

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", name.lower())


class RenderClient:
    """Client for the Render REST API (Bearer API key)."""

    BASE_URL = "https://api.render.com/v1"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.owner_id = self._settings.render_owner_id

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.render_api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=30.0,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._settings.render_api_key}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        client = await self._get_client()
        response = await client.request(method, path, **kwargs)
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await self._request("GET", "/owners", params={"limit": 1})
            return True
        except httpx.HTTPError as e:
            logger.error(f"Render connection failed: {e}")
            return False

    # ---- Services --------------------------------------------------------

    async def list_services(self, include_previews: bool = False) -> list[dict[str, Any]]:
        try:
            params: dict[str, Any] = {"includePreviews": str(include_previews).lower(), "limit": 100}
            if self.owner_id:
                params["ownerId"] = self.owner_id
            data = await self._request("GET", "/services", params=params)
            # List endpoints wrap each item as {"service": {...}, "cursor": "..."}
            services = [item.get("service", item) for item in data or []]
            logger.info(f"Found {len(services)} Render services")
            return services
        except httpx.HTTPError as e:
            logger.error(f"Render error listing services: {e}")
            return []

    async def get_service(self, service_id: str) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"/services/{service_id}")
        except httpx.HTTPError as e:
            logger.error(f"Render error fetching service {service_id}: {e}")
            return None

    async def create_web_service(
        self,
        name: str,
        repo: str,
        start_command: str,
        build_command: str = "",
        branch: str = "main",
        runtime: str = "python",
        region: str = "oregon",
        plan: str = "starter",
        env_vars: list[dict[str, str]] | None = None,
        auto_deploy: bool = True,
    ) -> dict[str, Any] | None:
        payload = {
            "type": "web_service",
            "name": name,
            "ownerId": self.owner_id,
            "repo": repo,
            "branch": branch,
            "autoDeploy": "yes" if auto_deploy else "no",
            "envVars": env_vars or [],
            "serviceDetails": {
                "runtime": runtime,
                "region": region,
                "plan": plan,
                "envSpecificDetails": {
                    "buildCommand": build_command,
                    "startCommand": start_command,
                },
            },
        }
        try:
            data = await self._request("POST", "/services", json=payload)
            logger.info(f"Created Render web service {name}")
            return (data or {}).get("service")
        except httpx.HTTPError as e:
            logger.error(f"Render error creating web service {name}: {e}")
            return None

    async def create_static_site(
        self,
        name: str,
        repo: str,
        build_command: str,
        publish_path: str = "public",
        branch: str = "main",
        env_vars: list[dict[str, str]] | None = None,
        auto_deploy: bool = True,
    ) -> dict[str, Any] | None:
        payload = {
            "type": "static_site",
            "name": name,
            "ownerId": self.owner_id,
            "repo": repo,
            "branch": branch,
            "autoDeploy": "yes" if auto_deploy else "no",
            "envVars": env_vars or [],
            "serviceDetails": {"buildCommand": build_command, "publishPath": publish_path},
        }
        try:
            data = await self._request("POST", "/services", json=payload)
            return (data or {}).get("service")
        except httpx.HTTPError as e:
            logger.error(f"Render error creating static site {name}: {e}")
            return None

    async def suspend_service(self, service_id: str) -> bool:
        try:
            await self._request("POST", f"/services/{service_id}/suspend")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Render error suspending {service_id}: {e}")
            return False

    async def resume_service(self, service_id: str) -> bool:
        try:
            await self._request("POST", f"/services/{service_id}/resume")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Render error resuming {service_id}: {e}")
            return False

    async def delete_service(self, service_id: str) -> bool:
        try:
            await self._request("DELETE", f"/services/{service_id}")
            logger.info(f"Deleted Render service {service_id}")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Render error deleting {service_id}: {e}")
            return False

    # ---- Deploys ---------------------------------------------------------

    async def deploy_service(self, service_id: str, clear_cache: bool = False) -> dict[str, Any] | None:
        try:
            return await self._request(
                "POST",
                f"/services/{service_id}/deploys",
                json={"clearCache": "clear" if clear_cache else "do_not_clear"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Render error triggering deploy for {service_id}: {e}")
            return None

    async def list_deploys(self, service_id: str, limit: int = 10) -> list[dict[str, Any]]:
        try:
            data = await self._request("GET", f"/services/{service_id}/deploys", params={"limit": limit})
            return [item.get("deploy", item) for item in data or []]
        except httpx.HTTPError as e:
            logger.error(f"Render error listing deploys for {service_id}: {e}")
            return []

    async def get_deploy(self, service_id: str, deploy_id: str) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"/services/{service_id}/deploys/{deploy_id}")
        except httpx.HTTPError as e:
            logger.error(f"Render error fetching deploy {deploy_id}: {e}")
            return None

    # ---- Configuration / observability -------------------------------------

    async def update_env_vars(self, service_id: str, env_vars: list[dict[str, str]]) -> list[dict[str, Any]]:
        """Replace the service's environment variables with env_vars ([{key, value}])."""
        try:
            return await self._request("PUT", f"/services/{service_id}/env-vars", json=env_vars) or []
        except httpx.HTTPError as e:
            logger.error(f"Render error updating env vars for {service_id}: {e}")
            return []

    async def get_logs(
        self,
        resource_id: str,
        limit: int = 100,
        direction: str = "backward",
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"resource": resource_id, "limit": limit, "direction": direction}
        if self.owner_id:
            params["ownerId"] = self.owner_id
        if start_time:
            params["startTime"] = start_time
        if end_time:
            params["endTime"] = end_time
        try:
            data = await self._request("GET", "/logs", params=params)
            return (data or {}).get("logs", [])
        except httpx.HTTPError as e:
            logger.error(f"Render error fetching logs for {resource_id}: {e}")
            return []

    async def get_metrics(
        self,
        resource_id: str,
        metric: str = "cpu",
        start_time: str | None = None,
        end_time: str | None = None,
        resolution_seconds: int = 60,
    ) -> list[dict[str, Any]] | None:
        params: dict[str, Any] = {"resource": resource_id, "resolutionSeconds": resolution_seconds}
        if start_time:
            params["startTime"] = start_time
        if end_time:
            params["endTime"] = end_time
        try:
            return await self._request("GET", f"/metrics/{metric}", params=params)
        except httpx.HTTPError as e:
            logger.error(f"Render error fetching {metric} metrics for {resource_id}: {e}")
            return None

    # ---- Datastores ------------------------------------------------------

    async def create_postgres(
        self,
        name: str,
        plan: str = "free",
        region: str = "oregon",
        version: str = "16",
        database_name: str | None = None,
        database_user: str | None = None,
    ) -> dict[str, Any] | None:
        payload = {
            "name": name,
            "ownerId": self.owner_id,
            "plan": plan,
            "region": region,
            "version": version,
            "databaseName": database_name or _slug(name),
            "databaseUser": database_user or _slug(name),
        }
        try:
            db = await self._request("POST", "/postgres", json=payload)
            logger.info(f"Created Render Postgres {name}")
            return db
        except httpx.HTTPError as e:
            logger.error(f"Render error creating Postgres {name}: {e}")
            return None

    async def list_postgres(self) -> list[dict[str, Any]]:
        try:
            data = await self._request("GET", "/postgres", params={"limit": 100})
            return [item.get("postgres", item) for item in data or []]
        except httpx.HTTPError as e:
            logger.error(f"Render error listing Postgres instances: {e}")
            return []

    async def get_postgres_connection_info(self, postgres_id: str) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"/postgres/{postgres_id}/connection-info")
        except httpx.HTTPError as e:
            logger.error(f"Render error fetching connection info for {postgres_id}: {e}")
            return None

    async def create_key_value(
        self, name: str, plan: str = "free", region: str = "oregon", maxmemory_policy: str = "allkeys_lru"
    ) -> dict[str, Any] | None:
        payload = {
            "name": name,
            "ownerId": self.owner_id,
            "plan": plan,
            "region": region,
            "maxmemoryPolicy": maxmemory_policy,
        }
        try:
            return await self._request("POST", "/key-value", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Render error creating Key Value {name}: {e}")
            return None

    async def deploy_full_stack(
        self, project_name: str, repo: str, start_command: str, build_command: str = ""
    ) -> dict[str, Any]:
        """
        Provision Postgres and Key Value instances, then a web service wired to both.

        Returns:
            {"db", "cache", "web"}; a step that failed is None and the web
            service is created without the missing connection strings.
        """
        db = await self.create_postgres(f"{project_name}-db")
        cache = await self.create_key_value(f"{project_name}-cache")

        env_vars = []
        if db and db.get("id"):
            info = await self.get_postgres_connection_info(db["id"])
            if info and info.get("internalConnectionString"):
                env_vars.append({"key": "DATABASE_URL", "value": info["internalConnectionString"]})
        if cache and cache.get("id"):
            env_vars.append({"key": "KEY_VALUE_ID", "value": cache["id"]})

        web = await self.create_web_service(
            name=f"{project_name}-web",
            repo=repo,
            build_command=build_command,
            start_command=start_command,
            env_vars=env_vars,
        )
        return {"db": db, "cache": cache, "web": web}
