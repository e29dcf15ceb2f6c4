"""
Movement classification.

Pure functions mapping a raw movement to exactly one category, plus the
grouping keys used by the daily stock report.
"""

from paddy_ledger.core.entities.classification import (
    ClassifiedMovement,
    ForProductionPurchase,
    Loading,
    NormalPurchase,
    ProductionShifting,
    Shifting,
)
from paddy_ledger.core.entities.location import Location, ProductionLot, Warehouse
from paddy_ledger.core.entities.movement import Movement, MovementType
from paddy_ledger.core.exceptions import (
    AmbiguousClassificationError,
    InvalidMovementError,
    InvalidWeightError,
    UnclassifiedMovementError,
)


def validate_weights(movement: Movement) -> None:
    """
    Check bags and net weight of a movement.

    A zero net weight is a data-entry defect and is rejected like a negative one.
    """
    if movement.net_weight <= 0:
        raise InvalidWeightError(movement.gross_weight, movement.tare_weight, movement.id)
    if movement.bags <= 0:
        raise InvalidMovementError(
            f"bags must be greater than 0, got {movement.bags}", movement.id
        )


def classify_movement(movement: Movement) -> ClassifiedMovement:
    """
    Classify a movement into exactly one category.

    Raises:
        AmbiguousClassificationError: mutually exclusive routing fields both set
        UnclassifiedMovementError: required routing fields missing
        InvalidMovementError: shifting from a sub-location onto itself
    """
    has_lot = movement.production_lot_id is not None
    has_to = movement.to_location_id is not None
    has_from = movement.from_location_id is not None
    kind = movement.movement_type.value

    common = {
        "movement_id": movement.id,
        "variety": movement.variety,
        "bags": movement.bags,
        "net_weight": movement.net_weight,
    }

    if movement.movement_type == MovementType.PURCHASE:
        if has_lot and has_to:
            raise AmbiguousClassificationError(
                kind, ["production_lot_id", "to_location_id"], movement.id
            )
        if has_lot:
            return ForProductionPurchase(
                **common,
                production_lot_id=movement.production_lot_id,
                source_location_id=movement.from_location_id,
                acquisition_rate=movement.acquisition_rate,
            )
        if has_to:
            return NormalPurchase(
                **common,
                to_location_id=movement.to_location_id,
                to_warehouse_id=movement.to_warehouse_id,
                acquisition_rate=movement.acquisition_rate,
            )
        raise UnclassifiedMovementError(
            kind, ["production_lot_id", "to_location_id"], movement.id
        )

    if not has_from:
        raise UnclassifiedMovementError(kind, ["from_location_id"], movement.id)

    if movement.movement_type == MovementType.SHIFTING:
        if has_lot:
            raise AmbiguousClassificationError(
                kind, ["production_lot_id", "to_location_id"], movement.id
            )
        if not has_to:
            raise UnclassifiedMovementError(kind, ["to_location_id"], movement.id)
        if movement.from_location_id == movement.to_location_id:
            raise InvalidMovementError(
                "shifting source and destination are the same sub-location",
                movement.id,
            )
        return Shifting(
            **common,
            from_location_id=movement.from_location_id,
            to_location_id=movement.to_location_id,
            from_warehouse_id=movement.from_warehouse_id,
            to_warehouse_id=movement.to_warehouse_id,
        )

    if movement.movement_type == MovementType.PRODUCTION_SHIFTING:
        if has_to:
            raise AmbiguousClassificationError(
                kind, ["production_lot_id", "to_location_id"], movement.id
            )
        if not has_lot:
            raise UnclassifiedMovementError(kind, ["production_lot_id"], movement.id)
        return ProductionShifting(
            **common,
            from_location_id=movement.from_location_id,
            production_lot_id=movement.production_lot_id,
            from_warehouse_id=movement.from_warehouse_id,
        )

    # Loading
    if has_to or has_lot:
        fields = ["from_location_id"]
        fields += ["to_location_id"] if has_to else []
        fields += ["production_lot_id"] if has_lot else []
        raise AmbiguousClassificationError(kind, fields, movement.id)
    return Loading(
        **common,
        from_location_id=movement.from_location_id,
        from_warehouse_id=movement.from_warehouse_id,
    )


def location_key(variety: str, location: Location | None, warehouse: Warehouse | None) -> str:
    """Grouping key for warehouse stock: ``<variety>-<code> - <warehouse>``."""
    code = location.code if location else ""
    warehouse_name = warehouse.name if warehouse else ""
    return f"{variety}-{code} - {warehouse_name}"


def production_key(
    variety: str,
    source: Location | None,
    lot: ProductionLot | None,
    lot_id: int,
) -> str:
    """Grouping key for production stock: ``<variety>-<source or Direct>-<lot>``."""
    source_code = source.code if source else "Direct"
    lot_code = lot.code if lot and lot.code else f"OUT{lot_id}"
    return f"{variety}-{source_code}-{lot_code}"
