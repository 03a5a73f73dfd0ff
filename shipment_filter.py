import typing

from schemas import (
    CONSIGNMENT_ID,
    CONTAINER_TRIP_ID,
    ENTITY_ID,
    REF_ID,
    SHEET,
    SHEET_CONSIGNMENTS,
    SHEET_CONTAINERS,
    SHEET_ORDERS,
    ProviderPayload,
    Record,
    ShipmentResult,
)

# Lookup tiers, tried in order. The first one yielding orders wins.
MATCH_FIELDS = (REF_ID, CONSIGNMENT_ID, CONTAINER_TRIP_ID)


def unique_values(records: typing.Iterable[Record], field: str) -> typing.List[typing.Any]:
    """Non-empty values of `field` across `records`, de-duplicated, in first-seen order."""
    seen = []
    for record in records:
        value = record.get(field)
        if value and value not in seen:
            seen.append(value)
    return seen


def match_orders(orders: typing.List[Record], ref: str) -> typing.Tuple[typing.List[Record], bool]:
    """
    Find the orders a reference points at.

    The reference is compared against the order reference first, then the
    consignment ID, then the container trip ID. Comparison is exact.

    Parameters:
    orders (list): Order records returned by the data provider.
    ref (str): The reference entered by the client.

    Returns:
    tuple: The matched orders (possibly empty) and whether they matched on the order reference itself.
    """
    for field in MATCH_FIELDS:
        matched = [order for order in orders if order.get(field) == ref]
        if matched:
            return matched, field == REF_ID
    return [], False


def filter_logs(
    logs: typing.List[Record],
    order_refs: typing.List[typing.Any],
    container_ids: typing.List[typing.Any],
    consignment_id: typing.Any,
) -> typing.List[Record]:
    """
    Keep the log entries that belong to the matched orders, their containers or their consignment.

    Entries without an entity ID or a sheet name are dropped.
    """
    related = []
    for log in logs:
        entity = log.get(ENTITY_ID)
        sheet = log.get(SHEET)
        if not entity or not sheet:
            continue
        if (
            (sheet == SHEET_ORDERS and entity in order_refs)
            or (sheet == SHEET_CONTAINERS and entity in container_ids)
            or (sheet == SHEET_CONSIGNMENTS and entity == consignment_id)
        ):
            related.append(log)
    return related


def lookup_shipment(payload: ProviderPayload, ref: str) -> ShipmentResult:
    """
    Resolve a client reference against the provider's records.

    Parameters:
    payload (ProviderPayload): Orders and logs as returned by the data provider.
    ref (str): The reference entered by the client (order ref, consignment ID or container trip ID).

    Returns:
    ShipmentResult: The matched orders and their related log entries. Both lists are empty when nothing matches.
    """
    orders, is_order_ref = match_orders(payload.orders, ref)

    consignment_id = (orders[0].get(CONSIGNMENT_ID) or "") if orders else ""
    container_ids = unique_values(orders, CONTAINER_TRIP_ID)
    order_refs = [ref] if is_order_ref else unique_values(orders, REF_ID)

    logs = filter_logs(payload.logs, order_refs, container_ids, consignment_id)
    return ShipmentResult(orders=orders, logs=logs)
