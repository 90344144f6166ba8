import pytest

from src.common import Context
from src.dnd.dnd_state import CharacterSnapshot
from src.dnd.dpr.dpr_graph import evaluate_graph, evaluate_output, recompute_graph
from src.dnd.dpr.dpr_state import DPRGraph, OutputNode
from tests.test_data import (
    OUTPUT_ID,
    TestSettings,
    attack,
    build_graph,
    buffs,
    feats,
    feature,
    output,
)


def test_gwm_scenario_summary():
    off = evaluate_output(build_graph([attack("atk", "greatsword")], TestSettings.GWM_FIGHTER), OUTPUT_ID)
    on = evaluate_output(
        build_graph([attack("atk", "greatsword"), feats(gwm=True)], TestSettings.GWM_FIGHTER),
        OUTPUT_ID,
    )
    assert off.to_hit == 8
    assert off.p_hit == pytest.approx(0.65)
    assert off.p_crit == pytest.approx(0.05)
    assert off.target_ac == 16
    assert off.attacks == 2
    assert off.dpr == pytest.approx(16.3)

    assert on.to_hit == 3
    assert on.p_hit == pytest.approx(0.40)
    assert on.dpr == pytest.approx(18.3)
    assert "GWM: -5 to hit/+10 dmg." in on.notes


def test_output_without_attack_has_no_summary():
    graph = build_graph([feats(gwm=True), buffs(bless=True), feature("f", "rage")], TestSettings.BASELINE)
    assert evaluate_output(graph, OUTPUT_ID) is None
    recomputed = recompute_graph(graph)
    assert recomputed.output_nodes()[0].data.summary is None


def test_evaluation_is_idempotent():
    graph = build_graph(
        [attack("atk", "rapier"), feature("f", "sneak-attack"), buffs(bless=True)],
        TestSettings.ROGUE,
    )
    assert evaluate_graph(graph) == evaluate_graph(graph)

    once = recompute_graph(graph)
    twice = recompute_graph(once)
    assert once == twice


def test_recompute_does_not_mutate_input():
    graph = build_graph([attack("atk", "longsword")], TestSettings.BASELINE)
    recomputed = recompute_graph(graph)
    assert graph.output_nodes()[0].data.summary is None
    assert recomputed.output_nodes()[0].data.summary is not None
    assert recomputed is not graph


def test_cycles_do_not_change_the_result():
    sources = [attack("atk", "longsword"), feature("f", "fighting-style", styleId="dueling")]
    acyclic = build_graph(sources, TestSettings.BASELINE)
    cyclic = build_graph(
        sources,
        TestSettings.BASELINE,
        extra_edges=[
            {"id": "back", "source": OUTPUT_ID, "target": "atk"},
            {"id": "self", "source": OUTPUT_ID, "target": OUTPUT_ID},
            {"id": "loop", "source": "atk", "target": "atk"},
        ],
    )
    assert evaluate_output(cyclic, OUTPUT_ID) == evaluate_output(acyclic, OUTPUT_ID)


def test_only_direct_incoming_edges_count():
    # 特性节点只连到攻击节点，不连到输出节点
    graph = DPRGraph.model_validate(
        {
            "nodes": [attack("atk", "longsword"), feature("f", "hexblade"), output()],
            "edges": [
                {"source": "f", "target": "atk"},
                {"source": "atk", "target": OUTPUT_ID},
            ],
            "settings": TestSettings.BASELINE,
        }
    )
    summary = evaluate_output(graph, OUTPUT_ID)
    assert summary.dpr == pytest.approx(8.7)


def test_duplicate_edges_count_once():
    graph = build_graph(
        [attack("atk", "longsword")],
        TestSettings.BASELINE,
        extra_edges=[{"id": "dup", "source": "atk", "target": OUTPUT_ID}],
    )
    assert evaluate_output(graph, OUTPUT_ID).attacks == 2


def test_first_feats_node_wins():
    graph = build_graph(
        [attack("atk", "greatsword"), feats("feats-1", gwm=False), feats("feats-2", gwm=True)],
        TestSettings.GWM_FIGHTER,
    )
    assert evaluate_output(graph, OUTPUT_ID).to_hit == 8


def test_multiple_outputs_are_independent():
    graph = DPRGraph.model_validate(
        {
            "nodes": [
                attack("atk-a", "longsword"),
                attack("atk-b", "greatsword"),
                feats(gwm=True),
                output("out-a"),
                output("out-b"),
            ],
            "edges": [
                {"source": "atk-a", "target": "out-a"},
                {"source": "atk-b", "target": "out-b"},
                {"source": "feats-1", "target": "out-b"},
            ],
            "settings": TestSettings.GWM_FIGHTER,
        }
    )
    summaries = evaluate_graph(graph)
    assert set(summaries) == {"out-a", "out-b"}
    assert summaries["out-a"].to_hit == 8
    assert summaries["out-b"].to_hit == 3
    assert summaries["out-b"].dpr == pytest.approx(18.3)


def test_summary_uses_roll_mode():
    graph = build_graph([attack("atk", "longsword")], {**TestSettings.BASELINE, "advMode": "advantage"})
    summary = evaluate_output(graph, OUTPUT_ID)
    assert summary.adv_mode.value == "adv"
    assert summary.p_hit == pytest.approx(1 - 0.45 ** 2)
    assert summary.p_crit == pytest.approx(1 - 0.95 ** 2)


def test_defense_style_note():
    graph = build_graph(
        [attack("atk", "longsword"), feature("f", "fighting-style", styleId="defense")],
        TestSettings.BASELINE,
    )
    summary = evaluate_output(graph, OUTPUT_ID)
    assert summary.dpr == pytest.approx(8.7)
    assert "Defense: +1 AC (not factored into DPR)." in summary.notes


def test_notes_are_deduplicated():
    graph = build_graph(
        [attack("atk-1", "longsword"), attack("atk-2", "longsword", action_type="reaction"),
         buffs(bless=True)],
        TestSettings.BASELINE,
    )
    notes = evaluate_output(graph, OUTPUT_ID).notes
    assert notes.count("Bless: +≈2.5 to hit EV.") == 1


# ============================================================
# 运行时上下文
# ============================================================

def test_character_snapshot_overrides_settings():
    graph = build_graph([attack("atk", "longsword")], TestSettings.BASELINE)
    context = Context(character=CharacterSnapshot(total_level=11, str_mod=5, dex_mod=0))
    summary = evaluate_output(graph, OUTPUT_ID, context)
    assert summary.attacks == 3
    assert summary.to_hit == 9


def test_monster_prefills_target_unless_overridden():
    graph = build_graph([attack("atk", "rapier")], TestSettings.BASELINE)

    skeleton = evaluate_output(graph, OUTPUT_ID, Context(monster_id="skeleton"))
    assert skeleton.target_ac == 13
    assert "Target resists piercing damage." in skeleton.notes

    manual = evaluate_output(graph, OUTPUT_ID, Context(monster_id="skeleton", manual_override=True))
    assert manual.target_ac == 16
    assert not any(n.startswith("Target") for n in manual.notes)


def test_recompute_replaces_every_summary():
    graph = build_graph([attack("atk", "longsword")], TestSettings.BASELINE)
    recomputed = recompute_graph(graph)
    outputs = [n for n in recomputed.nodes if isinstance(n, OutputNode)]
    assert len(outputs) == 1
    assert outputs[0].data.summary.dpr == pytest.approx(8.7)
