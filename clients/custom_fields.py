"""Domain client for TimeCamp custom fields (v3 API).

Templates are managed through :class:`CustomFieldsClient`; values attached
to one user, task or time entry go through :class:`ResourceCustomFields`,
obtained from the owning domain client's ``custom_fields(<id>)``.
"""

from __future__ import annotations

from typing import Any, Literal

from clients._base import BaseTimeCampClient

__all__ = ["CustomFieldsClient", "ResourceCustomFields", "ResourceType"]

ResourceType = Literal["user", "task", "entry"]
FieldType = Literal["number", "string"]


class ResourceCustomFields:
    """Custom-field values bound to one resource instance."""

    def __init__(self, base: BaseTimeCampClient, resource_type: ResourceType, resource_id: int) -> None:
        self._base = base
        self.resource_type = resource_type
        self.resource_id = resource_id

    async def get_all(self) -> Any:
        endpoint = self._base.build_v3_endpoint(
            f"custom-fields/values/resource/{self.resource_id}/type/{self.resource_type}"
        )
        return await self._base.request("GET", endpoint)

    async def get(self, custom_field_id: int) -> Any:
        endpoint = self._base.build_v3_endpoint(
            f"custom-fields/{custom_field_id}/value/{self.resource_id}"
        )
        return await self._base.request("GET", endpoint)

    async def set(self, custom_field_id: int, value: str) -> Any:
        endpoint = self._base.build_v3_endpoint(
            f"custom-fields/{custom_field_id}/assign/{self.resource_id}"
        )
        return await self._base.request("POST", endpoint, json={"value": value})

    async def update(self, custom_field_id: int, value: str) -> Any:
        # Assigning again overwrites the stored value.
        return await self.set(custom_field_id, value)

    async def delete(self, custom_field_id: int) -> Any:
        endpoint = self._base.build_v3_endpoint(
            f"custom-fields/{custom_field_id}/unassign/{self.resource_id}"
        )
        return await self._base.request("DELETE", endpoint)


class CustomFieldsClient:
    """Custom-field template management."""

    def __init__(self, base: BaseTimeCampClient) -> None:
        self._base = base

    async def get_all(self) -> Any:
        return await self._base.request(
            "GET", self._base.build_v3_endpoint("custom-fields/template/list")
        )

    async def add(
        self,
        name: str,
        resource_type: ResourceType,
        field_type: FieldType,
        *,
        required: bool | None = None,
        status: int | None = None,
        default_value: str | None = None,
        field_options: list[dict[str, Any]] | None = None,
    ) -> Any:
        if not name:
            raise ValueError("Custom field name is required")
        payload: dict[str, Any] = {
            "name": name,
            "resourceType": resource_type,
            "fieldType": field_type,
        }
        payload.update(
            _template_options(
                required=required,
                status=status,
                default_value=default_value,
                field_options=field_options,
            )
        )
        return await self._base.request(
            "POST", self._base.build_v3_endpoint("custom-fields/template/create"), json=payload
        )

    async def update(
        self,
        template_id: int,
        *,
        name: str | None = None,
        required: bool | None = None,
        status: int | None = None,
        default_value: str | None = None,
        field_options: list[dict[str, Any]] | None = None,
    ) -> Any:
        payload = _template_options(
            required=required,
            status=status,
            default_value=default_value,
            field_options=field_options,
        )
        if name is not None:
            payload["name"] = name
        return await self._base.request(
            "PUT",
            self._base.build_v3_endpoint(f"custom-fields/template/{template_id}/modify"),
            json=payload,
        )

    async def delete(self, template_id: int) -> Any:
        return await self._base.request(
            "DELETE", self._base.build_v3_endpoint(f"custom-fields/template/{template_id}/remove")
        )

    def for_resource(self, resource_type: ResourceType, resource_id: int) -> ResourceCustomFields:
        return ResourceCustomFields(self._base, resource_type, resource_id)


def _template_options(
    *,
    required: bool | None,
    status: int | None,
    default_value: str | None,
    field_options: list[dict[str, Any]] | None,
) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if required is not None:
        options["required"] = required
    if status is not None:
        options["status"] = status
    if default_value is not None:
        options["defaultValue"] = default_value
    if field_options is not None:
        options["fieldOptions"] = field_options
    return options
