"""Python bindings generator for introspectable native class libraries.

Reads per-module XML metadata (classes, overloaded methods, enums and
constants), synthesizes wrapper declarations as Python AST, and writes them
to a single source artifact that loads like any hand-written module.

Usage:
    python smokegen.py --module core --module gui --output bindings.py
"""

import argparse
import ast
import enum
import importlib.machinery
import keyword
import os
import py_compile
import re
import sys
import tempfile
import types
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

TOOLKIT_NAME = "smokegen"
ARTIFACT_FORMAT = 1
BOOTSTRAP_ALIAS = "__smokegen__"
DEFAULT_OUTPUT = Path("smoke_bindings.py")
DEFAULT_NAMESPACE = "smoke_bindings"
OUTPUT_ENV = "SMOKEGEN_OUTPUT"
NAMESPACE_ENV = "SMOKEGEN_NAMESPACE"
MODULE_PATH_ENV = "SMOKEGEN_MODULE_PATH"
PROGRESS_INTERVAL = 1000

KNOWN_MODULES = (
    "core",
    "gui",
    "network",
    "opengl",
    "sql",
    "svg",
    "xml",
    "xmlpatterns",
    "script",
    "scripttools",
    "uitools",
    "webkit",
    "help",
    "test",
    "multimedia",
    "declarative",
)


# ===--- Errors ---=== #


VALID_ERROR_CODES = {
    "UNKNOWN_MODULE",
    "INVALID_MODULE_NAME",
    "MALFORMED_METADATA",
    "INVALID_NAMESPACE",
    "FORMAT_MISMATCH",
    "INVALID_DECLARATION",
    "PATH_NOT_FOUND",
    "MISSING_MODULES",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


class ContractViolation(ValueError):
    """A caller broke an input contract. Not recoverable."""


class BindingError(RuntimeError):
    """A generated wrapper was called without a usable native backend."""


# ===--- Configuration ---=== #


def default_output_path() -> Path:
    raw = os.environ.get(OUTPUT_ENV)
    return Path(raw) if raw else DEFAULT_OUTPUT


def default_namespace() -> str:
    return os.environ.get(NAMESPACE_ENV) or DEFAULT_NAMESPACE


def default_module_path() -> tuple[Path, ...]:
    raw = os.environ.get(MODULE_PATH_ENV, "")
    return tuple(Path(entry) for entry in raw.split(os.pathsep) if entry)


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    modules: tuple[str, ...]
    module_path: tuple[Path, ...]
    output: Path
    namespace: str
    load: bool
    systems_dir: Path | None


def validate_path_exists(
    path: Path | None, flag: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"{flag} is required: no path provided.",
            suggestion or f"Pass the path explicitly: {flag} /path/to/resource",
        )
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        suggestion or "Provide an existing path for this flag.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Python bindings from native module metadata"
    )

    parser.add_argument("--module", action="extend", nargs="+", default=None)
    parser.add_argument("--module-path", action="append", type=Path, default=None)
    parser.add_argument("--output", type=Path, default=None)
    parser.add_argument("--namespace", type=str, default=None)
    parser.add_argument("--no-load", action="store_true", default=False)
    parser.add_argument("--emit-systems", type=Path, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig:
    modules = tuple(canonical_module_name(name) for name in args.module or ())
    if not modules and args.emit_systems is None:
        raise ConfigError(
            "MISSING_MODULES",
            "Nothing to do: no modules requested.",
            "Pass --module NAME (repeatable) or --emit-systems DIR.",
        )

    module_path = tuple(
        validate_path_exists(
            path,
            "--module-path",
            f"Point --module-path (or {MODULE_PATH_ENV}) at a directory of module XML files.",
        )
        for path in args.module_path or ()
    )

    namespace = validate_namespace_name(args.namespace or default_namespace())

    return GenerateConfig(
        modules=modules,
        module_path=module_path,
        output=args.output or default_output_path(),
        namespace=namespace,
        load=not args.no_load,
        systems_dir=args.emit_systems,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig:
    return validate_config(parse_args(argv))


# ===--- Descriptor enumeration ---=== #


def _is_group(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _format_descriptor(name: str, tokens: Iterable[object]) -> str:
    return f"{name}({', '.join(str(token).lower() for token in tokens)})"


def enumerate_descriptors(name: str, arg_spec: Sequence) -> list[str]:
    """Return every method signature string implied by an argument spec.

    Two spec forms are accepted:

        Flat:          ["int", "QString"]        -> ["name(int, qstring)"]
        Alternatives:  [["int", "double"],       -> ["name(int, bool)",
                        ["bool", "bool"]]            "name(double, bool)"]

    In the alternatives form each inner sequence lists the choices for one
    argument position. The i-th signature takes the i-th entry of every
    group, in group order. Type tokens are lower-cased; the method name is
    kept as given.

    Args:
        name: Native method name.
        arg_spec: Flat sequence of type tokens, or a sequence of equal-length
            alternative groups.

    Returns:
        One descriptor for a flat spec, n descriptors for groups of length n.

    Raises:
        ContractViolation: Groups of unequal length, a mix of tokens and
            groups, or groups nested more than two levels deep.
    """
    group_flags = [_is_group(entry) for entry in arg_spec]
    if not any(group_flags):
        return [_format_descriptor(name, arg_spec)]
    if not all(group_flags):
        raise ContractViolation(
            f"Argument spec for {name!r} mixes type tokens and alternative groups"
        )

    lengths = [len(group) for group in arg_spec]
    if len(set(lengths)) > 1:
        raise ContractViolation(
            f"Alternative groups for {name!r} have unequal lengths: {lengths}"
        )
    for group in arg_spec:
        if any(_is_group(token) for token in group):
            raise ContractViolation(
                f"Argument spec for {name!r} nests alternatives more than two levels deep"
            )

    return [_format_descriptor(name, row) for row in zip(*arg_spec)]


@dataclass(frozen=True)
class MethodSpec:
    name: str
    arg_spec: tuple = ()

    def descriptors(self) -> list[str]:
        return enumerate_descriptors(self.name, self.arg_spec)


# ===--- Module metadata ---=== #


@dataclass(frozen=True)
class MethodDef:
    name: str
    arg_spec: tuple = ()
    static: bool = False
    returns: str | None = None

    @property
    def spec(self) -> MethodSpec:
        return MethodSpec(self.name, self.arg_spec)

    @property
    def arity(self) -> int:
        return len(self.arg_spec)


@dataclass(frozen=True)
class EnumDef:
    name: str
    items: tuple[tuple[str, int], ...] = ()


@dataclass(frozen=True)
class ConstantDef:
    name: str
    value: int | str


@dataclass(frozen=True)
class ClassDef:
    name: str
    methods: tuple[MethodDef, ...] = ()
    enums: tuple[EnumDef, ...] = ()
    copyable: bool = False


@dataclass(frozen=True)
class ModuleMetadata:
    """Parsed contents of one module metadata file.

    Attributes:
        name: Canonical (lower-case) module name.
        requires: Modules that must be loaded before this one.
        classes: Classes in document order.
        enums: Module-level enumerations in document order.
        constants: Module-level constants in document order.
        source: File the metadata was read from, if any.
    """

    name: str
    requires: tuple[str, ...] = ()
    classes: tuple[ClassDef, ...] = ()
    enums: tuple[EnumDef, ...] = ()
    constants: tuple[ConstantDef, ...] = ()
    source: Path | None = None


_MODULE_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")


def canonical_module_name(name: object) -> str:
    canonical = name.strip().lower() if isinstance(name, str) else ""
    if _MODULE_NAME_RE.match(canonical):
        return canonical
    raise ConfigError(
        "INVALID_MODULE_NAME",
        f"Invalid module name: {name!r}",
        "Module names are plain identifiers such as core or gui.",
    )


def _malformed(source: object, message: str) -> ConfigError:
    return ConfigError(
        "MALFORMED_METADATA",
        f"{source}: {message}",
        "Regenerate the module metadata file.",
    )


def _parse_flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes"}


def parse_arg_spec(method: ET.Element, source: object) -> tuple:
    """Read <param> children into a flat or alternatives-form spec."""
    flat: list[str] = []
    groups: list[tuple[str, ...]] = []
    for param in method.findall("param"):
        type_attr = param.get("type")
        alternatives = [(el.text or "").strip() for el in param.findall("type")]
        if any(not alt for alt in alternatives):
            raise _malformed(source, f"empty <type> in method {method.get('name')!r}")
        if type_attr is not None and alternatives:
            raise _malformed(
                source,
                f"param of {method.get('name')!r} has both a type attribute and <type> children",
            )
        if type_attr is not None:
            flat.append(type_attr)
        elif alternatives:
            groups.append(tuple(alternatives))
        else:
            raise _malformed(source, f"param of {method.get('name')!r} has no type")

    if flat and groups:
        raise _malformed(
            source, f"method {method.get('name')!r} mixes flat params and alternatives"
        )
    return tuple(groups) if groups else tuple(flat)


def parse_enum(element: ET.Element, source: object) -> EnumDef:
    name = element.get("name")
    if not name:
        raise _malformed(source, "<enum> without a name")

    items: list[tuple[str, int]] = []
    next_value = 0
    for item in element.findall("item"):
        item_name = item.get("name")
        if not item_name:
            raise _malformed(source, f"item without a name in enum {name!r}")
        raw = item.get("value")
        if raw is None:
            value = next_value
        else:
            try:
                value = int(raw, 0)
            except ValueError as err:
                raise _malformed(
                    source, f"non-integer value {raw!r} for {name}::{item_name}"
                ) from err
        items.append((item_name, value))
        next_value = value + 1
    return EnumDef(name=name, items=tuple(items))


def parse_constant(element: ET.Element, source: object) -> ConstantDef:
    name = element.get("name")
    raw = element.get("value")
    if not name or raw is None:
        raise _malformed(source, "<constant> needs both name and value")
    try:
        value: int | str = int(raw, 0)
    except ValueError:
        value = raw
    return ConstantDef(name=name, value=value)


def parse_class(element: ET.Element, source: object) -> ClassDef:
    name = element.get("name")
    if not name:
        raise _malformed(source, "<class> without a name")

    methods: list[MethodDef] = []
    for method in element.findall("method"):
        method_name = method.get("name")
        if not method_name:
            raise _malformed(source, f"method without a name in class {name!r}")
        methods.append(
            MethodDef(
                name=method_name,
                arg_spec=parse_arg_spec(method, source),
                static=_parse_flag(method.get("static")),
                returns=method.get("returns"),
            )
        )

    return ClassDef(
        name=name,
        methods=tuple(methods),
        enums=tuple(parse_enum(el, source) for el in element.findall("enum")),
        copyable=_parse_flag(element.get("copyable")),
    )


def parse_module_metadata(
    root: ET.Element, expected_name: str, source: Path | None = None
) -> ModuleMetadata:
    label = source if source is not None else expected_name
    if root.tag != "module":
        raise _malformed(label, f"root element is <{root.tag}>, expected <module>")

    declared = root.get("name")
    if declared is not None and canonical_module_name(declared) != expected_name:
        raise _malformed(
            label, f"declares module {declared!r} but was requested as {expected_name!r}"
        )

    requires = tuple(
        canonical_module_name((el.text or "").strip()) for el in root.findall("requires")
    )
    return ModuleMetadata(
        name=expected_name,
        requires=requires,
        classes=tuple(parse_class(el, label) for el in root.findall("class")),
        enums=tuple(parse_enum(el, label) for el in root.findall("enum")),
        constants=tuple(parse_constant(el, label) for el in root.findall("constant")),
        source=source,
    )


def load_module_file(path: Path, expected_name: str) -> ModuleMetadata:
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as err:
        raise _malformed(path, f"XML parse error: {err}") from err
    return parse_module_metadata(root, expected_name, path)


# ===--- Module registry ---=== #


class ModuleRegistry:
    """Tracks which native metadata modules are loaded, in load order.

    Loading is idempotent and case-insensitive. A module's <requires> are
    loaded before it, so dependencies always precede dependents in
    list_loaded(). Not thread-safe: callers serialize ensure_loaded and
    reload.
    """

    def __init__(self, search_path: Iterable[Path] | None = None):
        if search_path is None:
            self.search_path = default_module_path()
        else:
            self.search_path = tuple(Path(entry) for entry in search_path)
        self._loaded: dict[str, ModuleMetadata] = {}

    def find_module_file(self, name: str) -> Path:
        for directory in self.search_path:
            candidate = directory / f"{name}.xml"
            if candidate.is_file():
                return candidate
        searched = ", ".join(str(d) for d in self.search_path) or "(empty)"
        raise ConfigError(
            "UNKNOWN_MODULE",
            f"Unknown module: {name}",
            f"No {name}.xml on the module search path {searched}. "
            f"Set {MODULE_PATH_ENV} or pass --module-path.",
        )

    def ensure_loaded(self, name: str) -> ModuleMetadata:
        return self._load(canonical_module_name(name), ())

    def _load(self, name: str, pending: tuple[str, ...]) -> ModuleMetadata:
        if name in self._loaded:
            return self._loaded[name]
        if name in pending:
            chain = " -> ".join(pending + (name,))
            raise _malformed(name, f"circular module requirement: {chain}")

        metadata = load_module_file(self.find_module_file(name), name)
        for dependency in metadata.requires:
            self._load(dependency, pending + (name,))
        self._loaded[name] = metadata
        print(f"  Loaded module: {name} ({len(metadata.classes)} classes)")
        return metadata

    def is_loaded(self, name: str) -> bool:
        return canonical_module_name(name) in self._loaded

    def list_loaded(self) -> tuple[str, ...]:
        return tuple(self._loaded)

    def loaded_modules(self) -> tuple[ModuleMetadata, ...]:
        return tuple(self._loaded.values())

    def metadata(self, name: str) -> ModuleMetadata:
        canonical = canonical_module_name(name)
        if canonical not in self._loaded:
            raise ConfigError(
                "UNKNOWN_MODULE",
                f"Module is not loaded: {canonical}",
                "Call ensure_loaded first.",
            )
        return self._loaded[canonical]

    def reload(self, *names: str) -> tuple[str, ...]:
        """Tear down every loaded module and load exactly `names`.

        With no names the previously loaded set is re-read from disk. The new
        set, requirements included, is parsed before it replaces the old one,
        so any ConfigError leaves the current state untouched.

        Returns:
            The new list_loaded() order.
        """
        if names:
            targets = [canonical_module_name(name) for name in names]
        else:
            targets = list(self._loaded)
        previous = self._loaded
        self._loaded = {}
        try:
            for name in targets:
                self._load(name, ())
        except BaseException:
            self._loaded = previous
            raise
        return self.list_loaded()


_DEFAULT_REGISTRY: ModuleRegistry | None = None


def default_registry() -> ModuleRegistry:
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = ModuleRegistry()
    return _DEFAULT_REGISTRY


def set_default_registry(registry: ModuleRegistry | None) -> ModuleRegistry | None:
    """Replace the process-wide registry. Returns the previous one."""
    global _DEFAULT_REGISTRY
    previous = _DEFAULT_REGISTRY
    _DEFAULT_REGISTRY = registry
    return previous


@contextmanager
def using_registry(registry: ModuleRegistry) -> Iterator[ModuleRegistry]:
    previous = set_default_registry(registry)
    try:
        yield registry
    finally:
        set_default_registry(previous)


# ===--- Runtime support for generated artifacts ---=== #


class NativeEnum(enum.IntEnum):
    """Base class of every generated enumeration."""


class NativeBackend:
    """Bridge from generated wrappers to the native library.

    Subclass and install with attach_backend(). Each hook receives the
    candidate signature descriptors so the backend can pick an overload.
    """

    def invoke(self, instance, method: str, args: tuple, descriptors: tuple):
        raise NotImplementedError

    def invoke_static(self, class_name: str, method: str, args: tuple, descriptors: tuple):
        raise NotImplementedError

    def construct(self, class_name: str, args: tuple, descriptors: tuple):
        raise NotImplementedError


CopyStrategy = Callable[[object], object]

_BACKEND: NativeBackend | None = None
_TARGET_NAMESPACE: str | None = None
_SETTERS: dict[tuple[str, str], Callable] = {}
_COPY_STRATEGIES: dict[str, CopyStrategy] = {}


def attach_backend(backend: NativeBackend | None) -> NativeBackend | None:
    global _BACKEND
    previous = _BACKEND
    _BACKEND = backend
    return previous


def get_backend() -> NativeBackend:
    if _BACKEND is None:
        raise BindingError("No native backend attached; call attach_backend() first")
    return _BACKEND


def reset_runtime() -> None:
    """Forget the backend, target namespace, setters and copy strategies."""
    global _BACKEND, _TARGET_NAMESPACE
    _BACKEND = None
    _TARGET_NAMESPACE = None
    _SETTERS.clear()
    _COPY_STRATEGIES.clear()


def require_toolkit(format_version: int) -> None:
    if format_version != ARTIFACT_FORMAT:
        raise ConfigError(
            "FORMAT_MISMATCH",
            f"Artifact format {format_version} is not supported "
            f"(this {TOOLKIT_NAME} writes format {ARTIFACT_FORMAT})",
            f"Regenerate the bindings with this version of {TOOLKIT_NAME}.",
        )


def ensure_loaded(*names: str) -> tuple[str, ...]:
    registry = default_registry()
    for name in names:
        registry.ensure_loaded(name)
    return registry.list_loaded()


def set_target_namespace(namespace: "str | types.ModuleType") -> types.ModuleType:
    global _TARGET_NAMESPACE
    module = resolve_namespace(namespace)
    _TARGET_NAMESPACE = module.__name__
    return module


def target_namespace() -> types.ModuleType | None:
    if _TARGET_NAMESPACE is None:
        return None
    return resolve_namespace(_TARGET_NAMESPACE)


def call(instance, method: str, args: Iterable = (), descriptors: Iterable[str] = ()):
    return get_backend().invoke(instance, method, tuple(args), tuple(descriptors))


def call_static(
    class_name: str, method: str, args: Iterable = (), descriptors: Iterable[str] = ()
):
    return get_backend().invoke_static(class_name, method, tuple(args), tuple(descriptors))


def construct(class_name: str, args: Iterable = (), descriptors: Iterable[str] = ()):
    return get_backend().construct(class_name, tuple(args), tuple(descriptors))


def class_key(class_name: str) -> str:
    return class_name.strip().lower()


def register_setter(class_name: str, prop: str, fn: Callable) -> Callable:
    _SETTERS[(class_key(class_name), prop)] = fn
    return fn


def setter_for(class_name: str, prop: str) -> Callable | None:
    return _SETTERS.get((class_key(class_name), prop))


def register_copy_strategy(class_name: str) -> Callable[[CopyStrategy], CopyStrategy]:
    """Decorator registering the copy function for one native class."""

    def decorator(fn: CopyStrategy) -> CopyStrategy:
        _COPY_STRATEGIES[class_key(class_name)] = fn
        return fn

    return decorator


def _copy_constructor(class_name: str) -> CopyStrategy:
    descriptors = tuple(enumerate_descriptors(class_name, [f"const {class_name}&"]))

    def strategy(instance):
        return construct(class_name, (instance,), descriptors)

    return strategy


def register_copy_constructors(class_names: Iterable[str]) -> None:
    # An explicitly registered strategy wins over the copy constructor.
    for name in class_names:
        _COPY_STRATEGIES.setdefault(class_key(name), _copy_constructor(name))


def copy_native(class_name: str, instance):
    strategy = _COPY_STRATEGIES.get(class_key(class_name))
    if strategy is None:
        raise ContractViolation(f"No copy strategy registered for {class_name}")
    return strategy(instance)


# ===--- Form synthesis ---=== #


FORM_METHOD = "method"
FORM_ENUM = "enum"
FORM_CONSTANT = "constant"
FORM_PRELUDE = "module-prelude"
FORM_COPY = "copy"
VALID_FORM_KINDS = {FORM_METHOD, FORM_ENUM, FORM_CONSTANT, FORM_PRELUDE, FORM_COPY}


@dataclass(frozen=True)
class GeneratedForm:
    """One synthesized top-level declaration.

    Attributes:
        kind: One of VALID_FORM_KINDS.
        name: Primary Python name the form defines. Unique within a run.
        body: An ast.stmt, or an ast.Module when compound is True.
        compound: True when body wraps several independent top-level
            statements that the writer must unwrap before emission.
    """

    kind: str
    name: str
    body: ast.AST
    compound: bool = False

    def __post_init__(self) -> None:
        if self.kind not in VALID_FORM_KINDS:
            raise ContractViolation(f"Unknown form kind: {self.kind!r}")
        # ast.unparse needs positions on synthesized nodes.
        ast.fix_missing_locations(self.body)


# ast.FunctionDef and ast.ClassDef grew type_params in 3.12.
_TYPE_PARAMS = {"type_params": []} if "type_params" in ast.FunctionDef._fields else {}

_SETTER_RE = re.compile(r"^set[A-Z]")


def to_snake_case(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", name).lower()


def python_identifier(name: str) -> str:
    ident = re.sub(r"\W+", "_", name).strip("_")
    if not ident:
        raise ContractViolation(f"Cannot derive a Python identifier from {name!r}")
    if ident[0].isdigit():
        ident = "_" + ident
    if keyword.iskeyword(ident):
        ident += "_"
    return ident


def _toolkit_call(func: str, *args: ast.expr) -> ast.Call:
    target = ast.Attribute(
        value=ast.Name(id=BOOTSTRAP_ALIAS, ctx=ast.Load()), attr=func, ctx=ast.Load()
    )
    return ast.Call(func=target, args=list(args), keywords=[])


def _str_tuple(values: Iterable[str]) -> ast.Tuple:
    return ast.Tuple(elts=[ast.Constant(value=v) for v in values], ctx=ast.Load())


def _assign(name: str, value: ast.expr) -> ast.Assign:
    return ast.Assign(targets=[ast.Name(id=name, ctx=ast.Store())], value=value)


def _load(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Load())


def _function_def(
    name: str, params: Sequence[str], doc: str | None, result: ast.expr
) -> ast.FunctionDef:
    body: list[ast.stmt] = []
    if doc:
        body.append(ast.Expr(value=ast.Constant(value=doc)))
    body.append(ast.Return(value=result))
    arguments = ast.arguments(
        posonlyargs=[],
        args=[ast.arg(arg=param) for param in params],
        vararg=ast.arg(arg="args"),
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=[],
    )
    return ast.FunctionDef(
        name=name,
        args=arguments,
        body=body,
        decorator_list=[],
        returns=None,
        **_TYPE_PARAMS,
    )


def _compound(statements: list[ast.stmt]) -> ast.Module:
    return ast.Module(body=statements, type_ignores=[])


def group_overloads(methods: Iterable[MethodDef]) -> dict[str, list[MethodDef]]:
    """Group method entries by name, in first-appearance order."""
    groups: dict[str, list[MethodDef]] = {}
    for method in methods:
        groups.setdefault(method.name, []).append(method)
    return groups


def overload_descriptors(overloads: Iterable[MethodDef]) -> tuple[str, ...]:
    descriptors: dict[str, None] = {}
    for method in overloads:
        for descriptor in method.spec.descriptors():
            descriptors.setdefault(descriptor)
    return tuple(descriptors)


def _is_setter(overloads: Sequence[MethodDef]) -> bool:
    return bool(_SETTER_RE.match(overloads[0].name)) and all(
        not method.static and method.arity == 1 for method in overloads
    )


def constructor_form(cls: ClassDef, overloads: Sequence[MethodDef]) -> GeneratedForm:
    descriptors = overload_descriptors(overloads)
    fn_name = python_identifier(f"make_{to_snake_case(cls.name)}")
    result = _toolkit_call(
        "construct", ast.Constant(value=cls.name), _load("args"), _str_tuple(descriptors)
    )
    fn = _function_def(fn_name, (), "\n".join(descriptors), result)
    return GeneratedForm(kind=FORM_METHOD, name=fn_name, body=fn)


def method_form(cls: ClassDef, overloads: Sequence[MethodDef]) -> GeneratedForm:
    """Build the wrapper for one overload set of a class method.

    Instance methods take the native instance first and forward to
    __smokegen__.call; a set whose every overload is static forwards to
    __smokegen__.call_static instead. Single-argument setX methods also
    register themselves as the setter of property x, which makes the form
    compound.
    """
    method_name = overloads[0].name
    descriptors = overload_descriptors(overloads)
    fn_name = python_identifier(f"{to_snake_case(cls.name)}_{to_snake_case(method_name)}")
    doc = "\n".join(descriptors)

    if all(method.static for method in overloads):
        result = _toolkit_call(
            "call_static",
            ast.Constant(value=cls.name),
            ast.Constant(value=method_name),
            _load("args"),
            _str_tuple(descriptors),
        )
        fn = _function_def(fn_name, (), doc, result)
    else:
        result = _toolkit_call(
            "call",
            _load("instance"),
            ast.Constant(value=method_name),
            _load("args"),
            _str_tuple(descriptors),
        )
        fn = _function_def(fn_name, ("instance",), doc, result)

    if not _is_setter(overloads):
        return GeneratedForm(kind=FORM_METHOD, name=fn_name, body=fn)

    prop = method_name[3].lower() + method_name[4:]
    registration = ast.Expr(
        value=_toolkit_call(
            "register_setter",
            ast.Constant(value=cls.name),
            ast.Constant(value=prop),
            _load(fn_name),
        )
    )
    return GeneratedForm(
        kind=FORM_METHOD, name=fn_name, body=_compound([fn, registration]), compound=True
    )


# Member names that clash with enum.Enum attributes.
_ENUM_RESERVED = frozenset({"mro", "name", "value"})


def enum_member_name(item_name: str) -> str:
    member = python_identifier(item_name)
    if member in _ENUM_RESERVED:
        member += "_"
    return member


def enum_form(enum_def: EnumDef, owner: str | None = None) -> GeneratedForm:
    native_name = f"{owner}::{enum_def.name}" if owner else enum_def.name
    class_name = python_identifier(native_name.replace("::", ""))

    body: list[ast.stmt] = [ast.Expr(value=ast.Constant(value=native_name))]
    members: set[str] = set()
    for item_name, value in enum_def.items:
        member = enum_member_name(item_name)
        if member in members:
            raise ContractViolation(f"Duplicate member {member!r} in enum {native_name}")
        members.add(member)
        body.append(_assign(member, ast.Constant(value=value)))

    node = ast.ClassDef(
        name=class_name,
        bases=[
            ast.Attribute(
                value=_load(BOOTSTRAP_ALIAS), attr="NativeEnum", ctx=ast.Load()
            )
        ],
        keywords=[],
        body=body,
        decorator_list=[],
        **_TYPE_PARAMS,
    )
    return GeneratedForm(kind=FORM_ENUM, name=class_name, body=node)


def constant_form(constant: ConstantDef) -> GeneratedForm:
    name = python_identifier(constant.name)
    return GeneratedForm(
        kind=FORM_CONSTANT,
        name=name,
        body=_assign(name, ast.Constant(value=constant.value)),
    )


def prelude_form(metadata: ModuleMetadata) -> GeneratedForm:
    name = f"{metadata.name.upper()}_CLASSES"
    listing = _assign(name, _str_tuple(cls.name for cls in metadata.classes))
    copyable = [cls.name for cls in metadata.classes if cls.copyable]
    if not copyable:
        return GeneratedForm(kind=FORM_PRELUDE, name=name, body=listing)

    registration = ast.Expr(
        value=_toolkit_call("register_copy_constructors", _str_tuple(copyable))
    )
    return GeneratedForm(
        kind=FORM_PRELUDE, name=name, body=_compound([listing, registration]), compound=True
    )


def copy_form(cls: ClassDef) -> GeneratedForm:
    fn_name = python_identifier(f"copy_{to_snake_case(cls.name)}")
    result = _toolkit_call("copy_native", ast.Constant(value=cls.name), _load("instance"))
    fn = _function_def(fn_name, ("instance",), None, result)
    # Copies take exactly one argument.
    fn.args.vararg = None
    return GeneratedForm(kind=FORM_COPY, name=fn_name, body=fn)


def class_forms(cls: ClassDef) -> Iterator[GeneratedForm]:
    groups = group_overloads(cls.methods)
    constructor_name = cls.name.rsplit("::", 1)[-1]
    constructors = groups.pop(constructor_name, None)
    if constructors:
        yield constructor_form(cls, constructors)
    for overloads in groups.values():
        yield method_form(cls, overloads)
    for enum_def in cls.enums:
        yield enum_form(enum_def, owner=cls.name)
    if cls.copyable:
        yield copy_form(cls)


def module_forms(metadata: ModuleMetadata) -> Iterator[GeneratedForm]:
    yield prelude_form(metadata)
    for cls in metadata.classes:
        yield from class_forms(cls)
    for enum_def in metadata.enums:
        yield enum_form(enum_def)
    for constant in metadata.constants:
        yield constant_form(constant)


def report_progress(count: int) -> None:
    print(f"  Synthesized: {count} forms")


def iter_forms(
    registry: ModuleRegistry | None = None,
    on_progress: Callable[[int], None] | None = None,
) -> Iterator[GeneratedForm]:
    """Yield one GeneratedForm per bindable entity of every loaded module.

    Order is fixed for a given module set: modules in load order; within a
    module the prelude, then each class (constructor, methods grouped by
    name, class enums, copy wrapper), then module enums and constants.

    Args:
        registry: Registry to read; the process default when None.
        on_progress: Called with the running count after every
            PROGRESS_INTERVAL-th form.

    Raises:
        ContractViolation: Two forms would define the same Python name, or
            a method's alternative groups are misaligned.
    """
    registry = registry if registry is not None else default_registry()
    seen: set[str] = set()
    count = 0
    for metadata in registry.loaded_modules():
        for form in module_forms(metadata):
            if form.name in seen:
                raise ContractViolation(
                    f"Duplicate generated name {form.name!r} in module {metadata.name}"
                )
            seen.add(form.name)
            count += 1
            if on_progress is not None and count % PROGRESS_INTERVAL == 0:
                on_progress(count)
            yield form


def synthesize_all(
    sink: Callable[[GeneratedForm], None],
    registry: ModuleRegistry | None = None,
    on_progress: Callable[[int], None] | None = report_progress,
) -> int:
    """Push every synthesized form into `sink`. Returns the form count."""
    count = 0
    for form in iter_forms(registry, on_progress):
        sink(form)
        count += 1
    return count


# ===--- Artifact writer ---=== #


@dataclass(frozen=True)
class ArtifactHeader:
    """Run metadata embedded in the artifact preamble.

    Attributes:
        namespace: Name of the module the generated symbols belong to.
        modules: Modules to ensure loaded before the artifact body runs,
            in registry load order.
    """

    namespace: str
    modules: tuple[str, ...]


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing a single generated file.

    Attributes:
        filename: Filename written, e.g. "smokegen-core.xml".
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written UTF-8 content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    filename: str
    path: Path
    line_count: int
    byte_count: int


IF_EXISTS_OVERWRITE = "overwrite"
IF_EXISTS_FAIL = "fail"
VALID_IF_EXISTS = {IF_EXISTS_OVERWRITE, IF_EXISTS_FAIL}

_NAMESPACE_RE = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")
_HEADER_BORDER: str = "# x-------------------------------------------x #"


def validate_namespace_name(name: object) -> str:
    if (
        isinstance(name, str)
        and _NAMESPACE_RE.match(name)
        and not any(keyword.iskeyword(part) for part in name.split("."))
    ):
        return name
    raise ConfigError(
        "INVALID_NAMESPACE",
        f"Invalid target namespace: {name!r}",
        "Use a dotted Python module name such as app.bindings.",
    )


def resolve_namespace(namespace: "str | types.ModuleType") -> types.ModuleType:
    """Return the module object generated symbols are bound into.

    A module object is used as is. A name resolves to the module already in
    sys.modules, or to a new empty module registered under that name.

    Raises:
        ConfigError: INVALID_NAMESPACE for anything that is not a module or
            a dotted identifier.
    """
    if isinstance(namespace, types.ModuleType):
        return namespace
    name = validate_namespace_name(namespace)
    module = sys.modules.get(name)
    if module is None:
        module = types.ModuleType(name, "Generated native bindings.")
        sys.modules[name] = module
    return module


def format_file_header(header: ArtifactHeader) -> list[str]:
    """Return comment-block lines recording what the artifact was built from.

    Output format:
        # x-------------------------------------------x #
        # | Python bindings for app.bindings
        # | Generated by smokegen (artifact format 1)
        # | Modules: core, gui
        # x-------------------------------------------x #

    Modules keep registry load order. No timestamps, so regenerating with
    the same module set yields identical bytes.
    """
    modules = ", ".join(header.modules) if header.modules else "(none)"
    return [
        _HEADER_BORDER,
        f"# | Python bindings for {header.namespace}",
        f"# | Generated by {TOOLKIT_NAME} (artifact format {ARTIFACT_FORMAT})",
        f"# | Modules: {modules}",
        _HEADER_BORDER,
    ]


def bootstrap_statement() -> ast.Import:
    return ast.Import(names=[ast.alias(name=TOOLKIT_NAME, asname=BOOTSTRAP_ALIAS)])


def preamble_statements(header: ArtifactHeader) -> list[ast.stmt]:
    """Statements that prepare the process before any generated form runs.

    They check the toolkit understands this artifact format, load every
    recorded module, and point the toolkit's target namespace at
    header.namespace. All go through the bootstrap alias, never through
    names of the target namespace.
    """
    return [
        ast.Expr(value=_toolkit_call("require_toolkit", ast.Constant(value=ARTIFACT_FORMAT))),
        ast.Expr(
            value=_toolkit_call(
                "ensure_loaded", *(ast.Constant(value=m) for m in header.modules)
            )
        ),
        ast.Expr(
            value=_toolkit_call("set_target_namespace", ast.Constant(value=header.namespace))
        ),
    ]


def render_statement(node: ast.stmt) -> str:
    return ast.unparse(ast.fix_missing_locations(node))


def assemble_artifact_head(header: ArtifactHeader) -> str:
    """Return the artifact text that precedes the generated forms.

    File structure:
        import smokegen as __smokegen__     <- bootstrap alias
        <header_comment_block>              <- format_file_header output
        <preamble statements>               <- preamble_statements output

    Returns:
        Source text ending in a newline.
    """
    parts: list[str] = [render_statement(bootstrap_statement())]
    parts.extend(format_file_header(header))
    parts.extend(render_statement(stmt) for stmt in preamble_statements(header))
    return "\n".join(parts) + "\n"


def flatten_form(form: GeneratedForm) -> list[ast.stmt]:
    """Return the top-level statements a form contributes to the artifact.

    Raises:
        ContractViolation: A compound form whose body is not an ast.Module
            of statements, or a plain form whose body is not a statement.
    """
    if form.compound:
        if not isinstance(form.body, ast.Module):
            raise ContractViolation(
                f"Compound form {form.name!r} has a {type(form.body).__name__} body; "
                "only ast.Module can be unwrapped"
            )
        statements = list(form.body.body)
        for statement in statements:
            if not isinstance(statement, ast.stmt):
                raise ContractViolation(
                    f"Compound form {form.name!r} contains a non-statement node"
                )
        return statements

    if not isinstance(form.body, ast.stmt):
        raise ContractViolation(
            f"Form {form.name!r} has a {type(form.body).__name__} body but is not "
            "marked compound"
        )
    return [form.body]


class ArtifactWriter:
    """Streams generated forms into an open artifact file.

    emit() is shaped as a synthesize_all sink. Obtain instances through
    open_artifact(), which owns the file handle.
    """

    def __init__(self, handle, header: ArtifactHeader):
        self._handle = handle
        self.header = header
        self.form_count = 0
        self.statement_count = 0

    def write_head(self) -> None:
        self._handle.write(assemble_artifact_head(self.header))

    def emit(self, form: GeneratedForm) -> None:
        for statement in flatten_form(form):
            self._handle.write("\n" + render_statement(statement) + "\n")
            self.statement_count += 1
        self.form_count += 1


@contextmanager
def open_artifact(
    path: Path,
    namespace: "str | types.ModuleType",
    if_exists: str = IF_EXISTS_OVERWRITE,
    registry: ModuleRegistry | None = None,
) -> Iterator[ArtifactWriter]:
    """Open an artifact for streaming and yield its ArtifactWriter.

    The head (bootstrap import, module-list comment, preamble) is written on
    entry. Content goes to a temporary file beside `path`, which replaces
    `path` only after the block exits cleanly. On any error the handle is
    closed, the temporary file removed, and the error re-raised, so an
    earlier artifact at `path` is never replaced by a truncated one.

    Args:
        path: Destination file. Parent directories are created.
        namespace: Target namespace name or module object.
        if_exists: "overwrite" or "fail".
        registry: Source of the recorded module list; the process default
            when None.

    Raises:
        ContractViolation: Unknown if_exists value.
        FileExistsError: if_exists="fail" and `path` exists.
        ConfigError: The namespace cannot be resolved.
        OSError: Propagated directly from the filesystem.
    """
    if if_exists not in VALID_IF_EXISTS:
        raise ContractViolation(f"if_exists must be one of {sorted(VALID_IF_EXISTS)}")
    path = Path(path)
    if if_exists == IF_EXISTS_FAIL and path.exists():
        raise FileExistsError(f"Artifact already exists: {path}")

    module = resolve_namespace(namespace)
    registry = registry if registry is not None else default_registry()
    header = ArtifactHeader(namespace=module.__name__, modules=registry.list_loaded())

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            writer = ArtifactWriter(handle, header)
            writer.write_head()
            yield writer
        os.chmod(temp_path, 0o644)
        if if_exists == IF_EXISTS_FAIL:
            # link refuses an existing target; replace would clobber it.
            os.link(temp_path, path)
            temp_path.unlink()
        else:
            os.replace(temp_path, path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def write_artifact(
    path: Path,
    namespace: "str | types.ModuleType",
    forms: Iterable[GeneratedForm],
    if_exists: str = IF_EXISTS_OVERWRITE,
    registry: ModuleRegistry | None = None,
) -> Path:
    """Write `forms` to an artifact at `path` and return `path`.

    Thin shell over open_artifact; see it for layout, atomicity and errors.
    """
    with open_artifact(path, namespace, if_exists, registry) as writer:
        for form in forms:
            writer.emit(form)
    return Path(path)


# ===--- Build dependency wrappers ---=== #


WRAPPER_TYPE = "module-presence"
WRAPPER_ACTIONS = ("compile", "load")
STATE_UNBUILT = "unbuilt"
STATE_BUILT = "built"


def normalize_module_names(modules: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(modules, str):
        modules = (modules,)
    names = tuple(canonical_module_name(name) for name in modules)
    if not names:
        raise ContractViolation("A module wrapper needs at least one module name")
    return names


@dataclass
class ModuleWrapper:
    """Build-graph unit whose only effect is loading native modules.

    It carries no artifact of its own. Declaring it as a dependency makes
    any target that needs native bindings force module presence first.
    "compile" and "load" have the same effect; repeating them is harmless.

    Attributes:
        name: Unit name, e.g. "smokegen-core".
        modules: Module name(s) guaranteed. A single string is accepted.
        depends_on: Build-time dependencies declared for the unit.
        state: STATE_UNBUILT until the first successful perform().
    """

    name: str
    modules: tuple[str, ...]
    depends_on: tuple[str, ...] = (TOOLKIT_NAME,)
    state: str = STATE_UNBUILT

    def __post_init__(self) -> None:
        self.modules = normalize_module_names(self.modules)

    def perform(self, action: str, registry: ModuleRegistry | None = None) -> tuple[str, ...]:
        if action not in WRAPPER_ACTIONS:
            raise ContractViolation(
                f"Unknown build action {action!r}; expected one of {WRAPPER_ACTIONS}"
            )
        registry = registry if registry is not None else default_registry()
        for module in self.modules:
            registry.ensure_loaded(module)
        self.state = STATE_BUILT
        return self.modules


def wrapper_for_module(module: str) -> ModuleWrapper:
    name = canonical_module_name(module)
    return ModuleWrapper(name=f"{TOOLKIT_NAME}-{name}", modules=(name,))


def perform_all(
    wrappers: Iterable[ModuleWrapper],
    action: str,
    registry: ModuleRegistry | None = None,
) -> tuple[str, ...]:
    registry = registry if registry is not None else default_registry()
    for wrapper in wrappers:
        wrapper.perform(action, registry)
    return registry.list_loaded()


def format_wrapper_declaration(wrapper: ModuleWrapper) -> str:
    """Render a wrapper as its on-disk XML declaration.

    Output format:
        <?xml version="1.0" encoding="utf-8"?>
        <system name="smokegen-core" type="module-presence">
          <depends-on>smokegen</depends-on>
          <module>core</module>
        </system>
    """
    root = ET.Element("system", {"name": wrapper.name, "type": WRAPPER_TYPE})
    for dependency in wrapper.depends_on:
        ET.SubElement(root, "depends-on").text = dependency
    for module in wrapper.modules:
        ET.SubElement(root, "module").text = module
    ET.indent(root)
    return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def wrapper_declaration_path(directory: Path, module: str) -> Path:
    name = canonical_module_name(module)
    return Path(directory) / name / f"{TOOLKIT_NAME}-{name}.xml"


def write_wrapper_declarations(
    directory: Path, catalog: Iterable[str] = KNOWN_MODULES
) -> tuple[FileWriteResult, ...]:
    """Write one wrapper declaration per catalog module under `directory`.

    Returns:
        One FileWriteResult per file, in catalog order.

    Raises:
        ConfigError: A catalog entry is not a valid module name.
        OSError: Propagated directly if a write fails.
    """
    results: list[FileWriteResult] = []
    for module in catalog:
        path = wrapper_declaration_path(directory, module)
        path.parent.mkdir(parents=True, exist_ok=True)
        content = format_wrapper_declaration(wrapper_for_module(module))
        path.write_text(content, encoding="utf-8")
        results.append(
            FileWriteResult(
                filename=path.name,
                path=path.resolve(),
                line_count=content.count("\n"),
                byte_count=len(content.encode("utf-8")),
            )
        )
    return tuple(results)


def load_wrapper_declaration(path: Path) -> ModuleWrapper:
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as err:
        raise ConfigError(
            "INVALID_DECLARATION", f"{path}: XML parse error: {err}"
        ) from err

    if root.tag != "system" or root.get("type") != WRAPPER_TYPE:
        raise ConfigError(
            "INVALID_DECLARATION",
            f"{path}: not a {WRAPPER_TYPE} system declaration",
            f"Regenerate declarations with {TOOLKIT_NAME} --emit-systems.",
        )
    modules = tuple((el.text or "").strip() for el in root.findall("module"))
    if not modules:
        raise ConfigError("INVALID_DECLARATION", f"{path}: declares no modules")

    return ModuleWrapper(
        name=root.get("name") or Path(path).stem,
        modules=modules,
        depends_on=tuple((el.text or "").strip() for el in root.findall("depends-on")),
    )


# ===--- Regeneration ---=== #


@dataclass(frozen=True)
class RegenerationResult:
    """Outcome of one regenerate() run.

    Attributes:
        path: Artifact written.
        namespace: Module the generated symbols belong to.
        modules: Modules recorded in the artifact preamble.
        form_count: Forms synthesized and written.
        loaded: True when the artifact was executed into namespace.
    """

    path: Path
    namespace: types.ModuleType
    modules: tuple[str, ...]
    form_count: int
    loaded: bool


def compile_artifact(path: Path) -> Path:
    """Byte-compile an artifact. Raises py_compile.PyCompileError on bad source."""
    return Path(py_compile.compile(str(path), doraise=True))


def load_artifact(path: Path, namespace: "str | types.ModuleType") -> types.ModuleType:
    """Execute an artifact file into the namespace module and return it."""
    module = resolve_namespace(namespace)
    loader = importlib.machinery.SourceFileLoader(module.__name__, str(path))
    module.__file__ = str(path)
    module.__loader__ = loader
    loader.exec_module(module)
    return module


def regenerate(
    output: Path | None = None,
    namespace: "str | types.ModuleType | None" = None,
    modules: Sequence[str] = (),
    registry: ModuleRegistry | None = None,
    on_progress: Callable[[int], None] | None = report_progress,
    load: bool = True,
) -> RegenerationResult:
    """Rebuild the bindings artifact and load it.

    Runs: optional reload -> synthesize -> write -> compile -> load. Passing
    `modules` reloads the registry with exactly that subset first, which
    drops every other loaded module.

    Args:
        output: Artifact path; default_output_path() when None.
        namespace: Target namespace; default_namespace() when None.
        modules: Explicit module subset to reload before generating.
        registry: Registry to use; the process default when None. The
            artifact preamble runs against this registry.
        on_progress: Progress callback handed to synthesize_all.
        load: Execute the compiled artifact into the namespace.

    Raises:
        ConfigError: Unknown modules or an invalid namespace.
        ContractViolation: Malformed metadata reached synthesis.
        OSError: Filesystem failure writing the artifact.
        py_compile.PyCompileError: The artifact does not compile.
    """
    registry = registry if registry is not None else default_registry()
    output = Path(output) if output is not None else default_output_path()
    target = resolve_namespace(namespace if namespace is not None else default_namespace())

    if modules:
        names = normalize_module_names(modules)
        print(f"Reloading modules: {', '.join(names)}")
        registry.reload(*names)

    print(f"Generating: {target.__name__} -> {output}")
    with open_artifact(output, target, registry=registry) as writer:
        form_count = synthesize_all(writer.emit, registry=registry, on_progress=on_progress)
    print(
        f"  Written: {form_count} forms, {writer.statement_count} statements to {output}"
    )

    compile_artifact(output)
    if load:
        with using_registry(registry):
            load_artifact(output, target)
        print(f"  Loaded: {target.__name__}")

    return RegenerationResult(
        path=output,
        namespace=target,
        modules=writer.header.modules,
        form_count=form_count,
        loaded=load,
    )


# ===--- Main generation ---=== #


def run_generate(config: GenerateConfig) -> RegenerationResult | None:
    registry = ModuleRegistry(config.module_path or None)
    set_default_registry(registry)

    if config.systems_dir is not None:
        written = write_wrapper_declarations(config.systems_dir)
        print(f"  Systems: {len(written)} declarations to {config.systems_dir}")

    if not config.modules:
        return None
    return regenerate(
        output=config.output,
        namespace=config.namespace,
        modules=config.modules,
        registry=registry,
        load=config.load,
    )


def _report_config_error(err: ConfigError) -> None:
    print(f"Config error [{err.code}]: {err.message}")
    if err.suggestion:
        print(f"Hint: {err.suggestion}")


def main(argv: list[str] | None = None) -> None:
    try:
        config = build_config(argv)
    except ConfigError as err:
        _report_config_error(err)
        raise SystemExit(1) from err

    try:
        run_generate(config)
    except ConfigError as err:
        _report_config_error(err)
        raise SystemExit(1) from err
    except (OSError, py_compile.PyCompileError) as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err
    except (RuntimeError, ValueError) as err:
        print(f"Internal error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    # Generated artifacts import the toolkit as `smokegen`; run under that
    # name so they share this process's registry and runtime tables.
    import smokegen

    smokegen.main()
