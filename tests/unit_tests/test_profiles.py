from src.dnd.dnd_state import CharacterSnapshot, DamageTypeOption
from src.dnd.dpr.dpr_graph import print_summaries
from src.dnd.dpr.dpr_state import Settings
from src.dnd.dpr.profiles import resolve_attacker, resolve_target
from src.dnd.dpr.storage import dumps_graph, seed_graph


def test_attacker_from_settings():
    attacker = resolve_attacker(Settings.model_validate({"level": 7, "str": 18, "dex": 9}))
    assert (attacker.level, attacker.str_mod, attacker.dex_mod) == (7, 4, -1)


def test_attacker_from_character_snapshot():
    snapshot = CharacterSnapshot(total_level=25, str_mod=2, dex_mod=4)
    attacker = resolve_attacker(Settings(), snapshot)
    assert attacker.level == 20
    assert attacker.dex_mod == 4


def test_target_from_monster():
    target = resolve_target(Settings(), "adult-red-dragon")
    assert target.ac == 19
    assert target.resist == DamageTypeOption.SLASHING
    assert target.vuln == DamageTypeOption.NONE
    assert target.name == "Adult Red Dragon"


def test_manual_override_and_unknown_monster_use_settings():
    settings = Settings.model_validate({"targetAC": 12, "vuln": "piercing"})
    assert resolve_target(settings, "skeleton", manual_override=True).ac == 12
    assert resolve_target(settings, "tarrasque").vuln == DamageTypeOption.PIERCING
    assert resolve_target(settings).ac == 12


def test_print_summaries(tmp_path, capsys):
    path = tmp_path / "graph.json"
    path.write_text(dumps_graph(seed_graph()), encoding="utf-8")
    print_summaries(str(path))
    out = capsys.readouterr().out
    assert out.startswith("out-1: DPR")
    assert "Dueling: +2 damage with 1H melee." in out
