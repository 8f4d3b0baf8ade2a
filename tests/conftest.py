import argparse
import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import smokegen  # noqa: E402

FIXTURE_MODULES = GENERATOR_DIR / "tests" / "fixtures" / "modules"


class RecordingBackend(smokegen.NativeBackend):
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def invoke(self, instance, method, args, descriptors):
        self.calls.append(("invoke", instance, method, args, descriptors))
        return f"{method}-result"

    def invoke_static(self, class_name, method, args, descriptors):
        self.calls.append(("invoke_static", class_name, method, args, descriptors))
        return f"{class_name}.{method}-result"

    def construct(self, class_name, args, descriptors):
        self.calls.append(("construct", class_name, args, descriptors))
        return (class_name, args)


@pytest.fixture(autouse=True)
def isolated_runtime(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv(smokegen.MODULE_PATH_ENV, raising=False)
    monkeypatch.delenv(smokegen.OUTPUT_ENV, raising=False)
    monkeypatch.delenv(smokegen.NAMESPACE_ENV, raising=False)
    previous = smokegen.set_default_registry(None)
    smokegen.reset_runtime()
    yield
    smokegen.reset_runtime()
    smokegen.set_default_registry(previous)


@pytest.fixture
def fixture_modules() -> Path:
    return FIXTURE_MODULES


@pytest.fixture
def registry(fixture_modules: Path) -> smokegen.ModuleRegistry:
    return smokegen.ModuleRegistry([fixture_modules])


@pytest.fixture
def loaded_registry(registry: smokegen.ModuleRegistry) -> smokegen.ModuleRegistry:
    registry.ensure_loaded("core")
    registry.ensure_loaded("gui")
    return registry


@pytest.fixture
def backend() -> RecordingBackend:
    recording = RecordingBackend()
    smokegen.attach_backend(recording)
    return recording


@pytest.fixture
def namespace_name(request: pytest.FixtureRequest) -> Iterator[str]:
    name = f"smokegen_test_ns_{request.node.name}".replace("[", "_").replace("]", "_")
    name = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in name)
    yield name
    sys.modules.pop(name, None)


@pytest.fixture
def write_module(tmp_path: Path) -> Callable[[str, str], Path]:
    module_dir = tmp_path / "modules"
    module_dir.mkdir(exist_ok=True)

    def _write_module(name: str, inner_xml: str) -> Path:
        path = module_dir / f"{name}.xml"
        path.write_text(f'<module name="{name}">{inner_xml}</module>\n', encoding="utf-8")
        return path

    return _write_module


@pytest.fixture
def make_args(tmp_path: Path, fixture_modules: Path) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "module": ["core"],
            "module_path": [fixture_modules],
            "output": tmp_path / "bindings.py",
            "namespace": None,
            "no_load": False,
            "emit_systems": None,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args
