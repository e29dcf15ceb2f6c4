"""Tests for movement classification."""

from datetime import date

import pytest

from paddy_ledger.core.entities import (
    ForProductionPurchase,
    Loading,
    Location,
    MovementCategory,
    Movement,
    MovementType,
    NormalPurchase,
    ProductionLot,
    ProductionShifting,
    Shifting,
    Warehouse,
)
from paddy_ledger.core.exceptions import (
    AmbiguousClassificationError,
    InvalidMovementError,
    InvalidWeightError,
    UnclassifiedMovementError,
)
from paddy_ledger.core.services.classifier import (
    classify_movement,
    location_key,
    production_key,
    validate_weights,
)


def _movement(movement_type: MovementType, **routing) -> Movement:
    return Movement(
        id=1,
        movement_date=date(2024, 1, 1),
        movement_type=movement_type,
        variety="Sona",
        bags=10,
        gross_weight=520.0,
        tare_weight=20.0,
        **routing,
    )


class TestPurchaseClassification:
    def test_lot_without_destination_is_for_production(self):
        result = classify_movement(
            _movement(MovementType.PURCHASE, production_lot_id=4, acquisition_rate=21.0)
        )
        assert isinstance(result, ForProductionPurchase)
        assert result.category == MovementCategory.FOR_PRODUCTION_PURCHASE
        assert result.production_lot_id == 4
        assert result.net_weight == 500.0

    def test_destination_without_lot_is_normal(self):
        result = classify_movement(
            _movement(MovementType.PURCHASE, to_location_id=2, acquisition_rate=21.0)
        )
        assert isinstance(result, NormalPurchase)
        assert result.to_location_id == 2
        assert result.acquisition_rate == 21.0

    def test_both_set_is_ambiguous(self):
        with pytest.raises(AmbiguousClassificationError):
            classify_movement(
                _movement(MovementType.PURCHASE, to_location_id=2, production_lot_id=4)
            )

    def test_neither_set_is_unclassified(self):
        with pytest.raises(UnclassifiedMovementError):
            classify_movement(_movement(MovementType.PURCHASE))

    def test_for_production_keeps_source_label(self):
        result = classify_movement(
            _movement(MovementType.PURCHASE, production_lot_id=4, from_location_id=7)
        )
        assert result.source_location_id == 7
        assert result.affected_location_ids == []


class TestShiftingClassification:
    def test_shifting(self):
        result = classify_movement(
            _movement(MovementType.SHIFTING, from_location_id=1, to_location_id=2)
        )
        assert isinstance(result, Shifting)
        assert result.affected_location_ids == [1, 2]

    def test_shifting_needs_destination(self):
        with pytest.raises(UnclassifiedMovementError):
            classify_movement(_movement(MovementType.SHIFTING, from_location_id=1))

    def test_shifting_needs_source(self):
        with pytest.raises(UnclassifiedMovementError):
            classify_movement(_movement(MovementType.SHIFTING, to_location_id=2))

    def test_shifting_with_lot_is_ambiguous(self):
        with pytest.raises(AmbiguousClassificationError):
            classify_movement(
                _movement(
                    MovementType.SHIFTING,
                    from_location_id=1,
                    to_location_id=2,
                    production_lot_id=4,
                )
            )

    def test_shifting_onto_itself(self):
        with pytest.raises(InvalidMovementError):
            classify_movement(
                _movement(MovementType.SHIFTING, from_location_id=1, to_location_id=1)
            )

    def test_production_shifting(self):
        result = classify_movement(
            _movement(MovementType.PRODUCTION_SHIFTING, from_location_id=1, production_lot_id=4)
        )
        assert isinstance(result, ProductionShifting)
        assert result.outflow_location_id == 1

    def test_production_shifting_needs_lot(self):
        with pytest.raises(UnclassifiedMovementError):
            classify_movement(_movement(MovementType.PRODUCTION_SHIFTING, from_location_id=1))

    def test_production_shifting_with_destination_is_ambiguous(self):
        with pytest.raises(AmbiguousClassificationError):
            classify_movement(
                _movement(
                    MovementType.PRODUCTION_SHIFTING,
                    from_location_id=1,
                    to_location_id=2,
                    production_lot_id=4,
                )
            )


class TestLoadingClassification:
    def test_loading(self):
        result = classify_movement(_movement(MovementType.LOADING, from_location_id=3))
        assert isinstance(result, Loading)
        assert result.outflow_location_id == 3

    def test_loading_needs_source(self):
        with pytest.raises(UnclassifiedMovementError):
            classify_movement(_movement(MovementType.LOADING))

    @pytest.mark.parametrize("extra", [{"to_location_id": 2}, {"production_lot_id": 4}])
    def test_loading_with_extra_routing_is_ambiguous(self, extra):
        with pytest.raises(AmbiguousClassificationError) as exc_info:
            classify_movement(_movement(MovementType.LOADING, from_location_id=3, **extra))
        assert list(extra)[0] in exc_info.value.details["fields"]


class TestValidateWeights:
    def test_valid(self):
        validate_weights(_movement(MovementType.LOADING, from_location_id=3))

    @pytest.mark.parametrize("tare", [520.0, 600.0])
    def test_non_positive_net_weight(self, tare):
        movement = _movement(MovementType.LOADING, from_location_id=3).model_copy(
            update={"tare_weight": tare}
        )
        with pytest.raises(InvalidWeightError):
            validate_weights(movement)

    def test_zero_bags(self):
        movement = _movement(MovementType.LOADING, from_location_id=3).model_copy(
            update={"bags": 0}
        )
        with pytest.raises(InvalidMovementError):
            validate_weights(movement)


class TestGroupingKeys:
    def test_location_key(self):
        location = Location(code="K1", warehouse_id=1, variety="Sona")
        warehouse = Warehouse(id=1, code="W1", name="Main Godown")
        assert location_key("Sona", location, warehouse) == "Sona-K1 - Main Godown"

    def test_production_key(self):
        source = Location(code="K1", warehouse_id=1, variety="Sona")
        lot = ProductionLot(id=4, code="OUT1")
        assert production_key("Sona", source, lot, 4) == "Sona-K1-OUT1"

    def test_production_key_direct_purchase(self):
        lot = ProductionLot(id=4, code="OUT1")
        assert production_key("Sona", None, lot, 4) == "Sona-Direct-OUT1"

    def test_production_key_unknown_lot(self):
        assert production_key("Sona", None, None, 4) == "Sona-Direct-OUT4"
