from __future__ import annotations

from pathlib import Path

import pytest

import smokegen


def _regenerate(
    registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str, **kwargs: object
) -> smokegen.RegenerationResult:
    return smokegen.regenerate(
        output=tmp_path / "bindings.py",
        namespace=namespace_name,
        registry=registry,
        **kwargs,
    )


def test_t_01_regenerate_writes_compiles_and_loads(
    loaded_registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str
) -> None:
    result = _regenerate(loaded_registry, tmp_path, namespace_name)

    assert result.path == tmp_path / "bindings.py"
    assert result.modules == ("core", "gui")
    assert result.form_count == 22
    assert result.loaded is True
    assert result.namespace.GUI_CLASSES == ("QSlider", "QColor")
    assert result.namespace.QtOrientation.Vertical == 2
    assert result.namespace.QT_VERSION_STR == "4.8.7"


def test_t_02_generated_wrappers_forward_to_backend(
    loaded_registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str, backend
) -> None:
    bindings = _regenerate(loaded_registry, tmp_path, namespace_name).namespace

    slider = bindings.make_q_slider()
    bindings.q_slider_set_value(slider, 5)
    label = bindings.q_object_tr("hello")

    assert slider == ("QSlider", ())
    assert label == "QObject.tr-result"
    assert backend.calls[1] == (
        "invoke",
        slider,
        "setValue",
        (5,),
        ("setValue(int)", "setValue(double)"),
    )


def test_t_03_loading_registers_setters_and_copy_strategies(
    loaded_registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str, backend
) -> None:
    bindings = _regenerate(loaded_registry, tmp_path, namespace_name).namespace

    assert smokegen.setter_for("QSlider", "value") is bindings.q_slider_set_value
    assert smokegen.setter_for("QObject", "objectName") is bindings.q_object_set_object_name
    assert bindings.copy_q_color("red") == ("QColor", ("red",))


def test_t_04_explicit_modules_reload_registry_first(
    loaded_registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str
) -> None:
    result = _regenerate(loaded_registry, tmp_path, namespace_name, modules=("core",))

    assert result.modules == ("core",)
    assert loaded_registry.list_loaded() == ("core",)
    assert not hasattr(result.namespace, "GUI_CLASSES")


def test_t_05_no_load_writes_and_compiles_only(
    loaded_registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str
) -> None:
    result = _regenerate(loaded_registry, tmp_path, namespace_name, load=False)

    assert result.loaded is False
    assert result.path.exists()
    assert not hasattr(result.namespace, "QT_VERSION")
    assert list((tmp_path / "__pycache__").glob("bindings.*.pyc"))


def test_t_06_regeneration_is_repeatable(
    loaded_registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str
) -> None:
    first = _regenerate(loaded_registry, tmp_path, namespace_name).path.read_bytes()
    second = _regenerate(loaded_registry, tmp_path, namespace_name).path.read_bytes()

    assert first == second


def test_t_07_defaults_come_from_environment(
    monkeypatch: pytest.MonkeyPatch,
    fixture_modules: Path,
    tmp_path: Path,
    namespace_name: str,
) -> None:
    output = tmp_path / "env_bindings.py"
    monkeypatch.setenv(smokegen.MODULE_PATH_ENV, str(fixture_modules))
    monkeypatch.setenv(smokegen.OUTPUT_ENV, str(output))
    monkeypatch.setenv(smokegen.NAMESPACE_ENV, namespace_name)

    result = smokegen.regenerate(modules=("core",), on_progress=None)

    assert result.path == output
    assert result.namespace.__name__ == namespace_name
    assert result.namespace.CORE_CLASSES == ("QObject", "QPoint")


def test_t_08_progress_messages_are_printed(
    loaded_registry: smokegen.ModuleRegistry,
    tmp_path: Path,
    namespace_name: str,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _regenerate(loaded_registry, tmp_path, namespace_name)

    out = capsys.readouterr().out
    assert f"Generating: {namespace_name} -> {tmp_path / 'bindings.py'}" in out
    assert "Written: 22 forms, 27 statements" in out
    assert f"Loaded: {namespace_name}" in out


def test_t_09_single_module_string_is_not_split_into_letters(
    loaded_registry: smokegen.ModuleRegistry, tmp_path: Path, namespace_name: str
) -> None:
    result = _regenerate(loaded_registry, tmp_path, namespace_name, modules="core")

    assert result.modules == ("core",)


def test_t_10_enum_with_reserved_item_names_loads(
    write_module, tmp_path: Path, namespace_name: str
) -> None:
    write_module("flags", '<enum name="Mode"><item name="mro" value="4"/></enum>')
    registry = smokegen.ModuleRegistry([tmp_path / "modules"])

    bindings = _regenerate(registry, tmp_path, namespace_name, modules=("flags",)).namespace

    assert bindings.Mode.mro_ == 4
