from src.dnd.dpr.dpr_state import (
    FeatureBundle,
    FeaturesNode,
    FightingStyleFeature,
    LegacyAllFeature,
    SmiteFeature,
)
from src.dnd.dpr.features import aggregate_features, feature_to_bundle
from tests.test_data import feature


def _node(node_id, feature_type, **fields) -> FeaturesNode:
    return FeaturesNode.model_validate(feature(node_id, feature_type, **fields))


def test_feature_type_is_normalized_on_load():
    missing = _node("f1", None, sneak=True)
    assert isinstance(missing.data, LegacyAllFeature)
    assert missing.data.sneak is True

    unknown = _node("f2", "banana")
    assert isinstance(unknown.data, FightingStyleFeature)

    smite = _node("f3", "smite", slotLevel=3, undeadOrFiend=True)
    assert isinstance(smite.data, SmiteFeature)
    assert smite.data.slot_level == 3


def test_legacy_smite_dice_maps_to_slot_level():
    node = _node("f1", None, smite=True, smiteDice=3)
    assert node.data.slot_level == 2
    assert feature_to_bundle(node.data).smite_slot_level == 2


def test_empty_aggregate():
    assert aggregate_features([]) == FeatureBundle()


def test_merge_rules():
    bundle = aggregate_features(
        [
            _node("a", "crit-range", critRange=19),
            _node("b", None, critRange=18, maneuversPerRound=1, maneuverDie=10),
            _node("c", "maneuvers", maneuversPerRound=2, maneuverDie=6),
            _node("d", "brutal-critical", brutalCritDice=2),
            _node("e", "brutal-critical", brutalCritDice=1),
            _node("f", "smite", slotLevel=3),
            _node("g", "sneak-attack"),
        ]
    )
    assert bundle.crit_range == 18
    assert bundle.maneuvers_per_round == 3
    assert bundle.maneuver_die == 10
    assert bundle.brutal_crit_dice == 2
    assert bundle.smite and bundle.smite_slot_level == 3
    assert bundle.sneak_attack
    assert not bundle.rage


def test_merge_is_order_independent():
    nodes = [
        _node("a", "crit-range", critRange=19),
        _node("b", None, sneak=True, hexblade=True, maneuversPerRound=1),
        _node("c", "maneuvers", maneuverDie=12),
        _node("d", "rage"),
    ]
    assert aggregate_features(nodes) == aggregate_features(list(reversed(nodes)))


def test_first_fighting_style_wins():
    archery = _node("a", "fighting-style", styleId="archery")
    dueling = _node("b", None, styleId="dueling")
    assert aggregate_features([archery, dueling]).style_id == "archery"
    assert aggregate_features([dueling, archery]).style_id == "dueling"


def test_values_are_clamped():
    bundle = aggregate_features(
        [
            _node("a", "crit-range", critRange=2),
            _node("b", "maneuvers", maneuversPerRound=1, maneuverDie=7),
        ]
    )
    assert bundle.crit_range == 18
    assert bundle.maneuver_die == 8


def test_unknown_style_falls_back_to_first():
    bundle = feature_to_bundle(_node("a", "fighting-style", styleId="kung-fu").data)
    assert bundle.style_id == "defense"
