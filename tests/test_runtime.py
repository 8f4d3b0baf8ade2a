from __future__ import annotations

import pytest

import smokegen


def test_t_01_calls_without_backend_raise_binding_error() -> None:
    with pytest.raises(smokegen.BindingError, match="attach_backend"):
        smokegen.call(object(), "show")


def test_t_02_call_forwards_arguments_and_descriptors(backend) -> None:
    result = smokegen.call("widget", "resize", [1, 2], ["resize(int, int)"])

    assert result == "resize-result"
    assert backend.calls == [("invoke", "widget", "resize", (1, 2), ("resize(int, int)",))]


def test_t_03_call_static_and_construct_reach_backend(backend) -> None:
    smokegen.call_static("QObject", "tr", ("text",), ("tr(const char*)",))
    instance = smokegen.construct("QPoint", (1, 2), ("QPoint(int, int)",))

    assert instance == ("QPoint", (1, 2))
    assert [call[0] for call in backend.calls] == ["invoke_static", "construct"]


def test_t_04_attach_backend_returns_previous(backend) -> None:
    assert smokegen.attach_backend(None) is backend
    with pytest.raises(smokegen.BindingError):
        smokegen.get_backend()


def test_t_05_require_toolkit_rejects_other_formats() -> None:
    smokegen.require_toolkit(smokegen.ARTIFACT_FORMAT)

    with pytest.raises(smokegen.ConfigError) as exc_info:
        smokegen.require_toolkit(smokegen.ARTIFACT_FORMAT + 1)

    assert exc_info.value.code == "FORMAT_MISMATCH"


def test_t_06_ensure_loaded_uses_default_registry(
    registry: smokegen.ModuleRegistry,
) -> None:
    smokegen.set_default_registry(registry)

    assert smokegen.ensure_loaded("gui") == ("core", "gui")
    assert smokegen.ensure_loaded() == ("core", "gui")


def test_t_07_setters_are_keyed_case_insensitively_by_class() -> None:
    def set_value(instance, *args):
        return args

    assert smokegen.register_setter("QSlider", "value", set_value) is set_value
    assert smokegen.setter_for("qslider", "value") is set_value
    assert smokegen.setter_for("QSlider", "maximum") is None


def test_t_08_copy_constructor_strategy_constructs_from_instance(backend) -> None:
    smokegen.register_copy_constructors(["QPoint"])

    copy = smokegen.copy_native("QPoint", "original")

    assert copy == ("QPoint", ("original",))
    assert backend.calls[-1][3] == ("QPoint(const qpoint&)",)


def test_t_09_explicit_copy_strategy_wins_over_copy_constructor(backend) -> None:
    @smokegen.register_copy_strategy("QColor")
    def copy_color(instance):
        return ("copied", instance)

    smokegen.register_copy_constructors(["QColor"])

    assert smokegen.copy_native("QColor", "red") == ("copied", "red")
    assert backend.calls == []


def test_t_10_copy_without_strategy_is_a_contract_violation() -> None:
    with pytest.raises(smokegen.ContractViolation, match="No copy strategy"):
        smokegen.copy_native("QWidget", object())


def test_t_11_target_namespace_tracks_last_set(namespace_name: str) -> None:
    assert smokegen.target_namespace() is None

    module = smokegen.set_target_namespace(namespace_name)

    assert smokegen.target_namespace() is module
    assert module.__name__ == namespace_name


def test_t_12_native_enum_members_behave_as_ints() -> None:
    class Orientation(smokegen.NativeEnum):
        Horizontal = 1
        Vertical = 2

    assert Orientation.Vertical == 2
    assert Orientation(1) is Orientation.Horizontal
    assert Orientation.Horizontal | Orientation.Vertical == 3
