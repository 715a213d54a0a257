"""XML document accessors for device descriptions and SOAP replies.

Element lookups ignore XML namespaces and return ``None`` for absent fields;
callers turn absence into a classified outcome instead of catching
exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit
from xml.etree import ElementTree

from braviactl.core.model import DEFAULT_PORT, ConnectionDescriptor

IRCC_SERVICE_TYPE = "urn:schemas-sony-com:service:IRCC:1"

STATUS_OK = "ok"
STATUS_NO_SERVICE_LIST = "no_service_list"
STATUS_NO_MATCHING_SERVICE = "no_matching_service"
STATUS_MALFORMED = "malformed"

_DEVICE_FIELDS = ("friendlyName", "manufacturer", "manufacturerURL", "modelName", "UDN")


@dataclass(frozen=True)
class DescriptionOutcome:
    status: str
    descriptor: ConnectionDescriptor | None = None
    detail: str | None = None


def parse_xml(text: str) -> ElementTree.Element | None:
    try:
        return ElementTree.fromstring(text)
    except ElementTree.ParseError:
        return None


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def child(element: ElementTree.Element | None, name: str) -> ElementTree.Element | None:
    if element is None:
        return None
    for item in element:
        if local_name(item.tag) == name:
            return item
    return None


def children(element: ElementTree.Element | None, name: str) -> list[ElementTree.Element]:
    if element is None:
        return []
    return [item for item in element if local_name(item.tag) == name]


def child_text(element: ElementTree.Element | None, name: str) -> str | None:
    found = child(element, name)
    if found is None or found.text is None:
        return None
    return found.text.strip()


def find_path(element: ElementTree.Element | None, *names: str) -> ElementTree.Element | None:
    current = element
    for name in names:
        current = child(current, name)
        if current is None:
            return None
    return current


def parse_control_url(url: str) -> tuple[str, int] | None:
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.hostname:
        return None
    return parts.hostname, port or DEFAULT_PORT


def parse_device_description(text: str, service_type: str = IRCC_SERVICE_TYPE) -> DescriptionOutcome:
    root = parse_xml(text)
    if root is None:
        return DescriptionOutcome(STATUS_MALFORMED, detail="description is not well-formed XML")

    device = child(root, "device")
    if device is None:
        return DescriptionOutcome(STATUS_MALFORMED, detail="description has no root device")

    service_list = child(device, "serviceList")
    if service_list is None:
        return DescriptionOutcome(STATUS_NO_SERVICE_LIST)

    service = next(
        (s for s in children(service_list, "service") if child_text(s, "serviceType") == service_type),
        None,
    )
    if service is None:
        return DescriptionOutcome(STATUS_NO_MATCHING_SERVICE)

    control_url = child_text(service, "controlURL")
    endpoint = parse_control_url(control_url) if control_url else None
    if endpoint is None:
        return DescriptionOutcome(STATUS_MALFORMED, detail=f"invalid controlURL {control_url!r}")

    values = {name: child_text(device, name) for name in _DEVICE_FIELDS}
    missing = [name for name, value in values.items() if value is None]
    if missing:
        return DescriptionOutcome(STATUS_MALFORMED, detail=f"device is missing {', '.join(missing)}")

    host, port = endpoint
    return DescriptionOutcome(
        STATUS_OK,
        descriptor=ConnectionDescriptor(
            host=host,
            port=port,
            friendly_name=values["friendlyName"] or "",
            manufacturer=values["manufacturer"] or "",
            manufacturer_url=values["manufacturerURL"] or "",
            model_name=values["modelName"] or "",
            udn=values["UDN"] or "",
        ),
    )


def extract_soap_fault(root: ElementTree.Element | None) -> tuple[bool, str | None]:
    """Inspect a parsed SOAP envelope for a Fault element.

    Returns ``(False, None)`` when the body carries no fault, ``(True,
    description)`` when the UPnP error description could be read, and
    ``(True, None)`` when a fault is present but unreadable.
    """
    fault = find_path(root, "Body", "Fault")
    if fault is None:
        return False, None
    description = child_text(find_path(fault, "detail", "UPnPError"), "errorDescription")
    return True, description or None
