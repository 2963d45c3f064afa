import tempfile

from abigen.consistency import BindingsDrift, diff_bindings, ensure_consistent
from abigen.multi import MANIFEST_FILE, MultiAbigen


def test_get_value_scenario(tmp_path, counter_hr):
    gen = MultiAbigen.new([("Counter", counter_hr)])
    gen.write_to_module(tmp_path)

    text = (tmp_path / "counter.py").read_text(encoding="utf-8")
    wrappers = [line.strip() for line in text.splitlines() if line.strip().startswith("def ")]
    assert wrappers == ["def get_value(self) -> ContractCall[int]:"]
    assert ensure_consistent(gen, tmp_path)


def test_missing_file_is_inconsistent(tmp_path, counter_hr):
    gen = MultiAbigen.new([("Counter", counter_hr)])
    gen.write_to_module(tmp_path)
    (tmp_path / "counter.py").unlink()
    assert not ensure_consistent(gen, tmp_path)


def test_changed_content_is_inconsistent(tmp_path, counter_hr):
    gen = MultiAbigen.new([("Counter", counter_hr)])
    gen.write_to_module(tmp_path)
    with open(tmp_path / MANIFEST_FILE, "a", encoding="utf-8") as f:
        f.write("from . import hand_written\n")
    assert not ensure_consistent(gen, tmp_path)


def test_extra_files_are_not_detected(tmp_path, counter_hr, erc20_json):
    MultiAbigen.new([("Counter", counter_hr), ("ERC20", erc20_json)]).write_to_module(tmp_path)
    # ERC20 is no longer generated, but the manifest still differs
    smaller = MultiAbigen.new([("Counter", counter_hr)])
    assert not ensure_consistent(smaller, tmp_path)

    # a stray module next to an up-to-date tree is not reported
    smaller.write_to_module(tmp_path)
    assert (tmp_path / "erc20.py").exists()
    assert ensure_consistent(smaller, tmp_path)


def test_single_file_round_trip(tmp_path, counter_hr, erc20_json):
    gen = MultiAbigen.new([("Counter", counter_hr), ("ERC20", erc20_json)]).single_file()
    gen.write_to_module(tmp_path)
    assert ensure_consistent(gen, tmp_path)


def test_scratch_directory_is_removed(tmp_path, monkeypatch, counter_hr):
    scratch_root = tmp_path / "scratch"
    scratch_root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch_root))

    out = tmp_path / "out"
    gen = MultiAbigen.new([("Counter", counter_hr)])
    gen.write_to_module(out)
    assert ensure_consistent(gen, out)
    assert not ensure_consistent(gen, tmp_path / "empty")
    diff_bindings(gen, out)
    assert list(scratch_root.iterdir()) == []


def test_diff_bindings_reports_missing_and_changed(tmp_path, counter_hr, erc20_json):
    gen = MultiAbigen.new([("Counter", counter_hr), ("ERC20", erc20_json)])
    assert [d.file_name for d in diff_bindings(gen, tmp_path)] == ["counter.py", "erc20.py", MANIFEST_FILE]
    assert all(d.missing for d in diff_bindings(gen, tmp_path))

    gen.write_to_module(tmp_path)
    assert diff_bindings(gen, tmp_path) == []

    target = tmp_path / "counter.py"
    target.write_text(target.read_text(encoding="utf-8").replace("get_value", "fetch_value"), encoding="utf-8")
    (drift,) = diff_bindings(gen, tmp_path)
    assert drift.file_name == "counter.py"
    assert not drift.missing
    assert "--- existing/counter.py" in drift.diff
    assert "+++ generated/counter.py" in drift.diff
    assert "+    def get_value(self) -> ContractCall[int]:" in drift.diff
    assert drift.describe().startswith("counter.py: content differs\n")


def test_drift_describe_missing():
    assert BindingsDrift("erc20.py", missing=True).describe() == "erc20.py: not present in the existing bindings"
