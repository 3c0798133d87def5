"""confbind CLI: inspect and resolve configuration shapes.

Usage:
    confbind describe myapp.settings:AppConfig              # model tree and candidate keys
    confbind describe myapp.settings:AppConfig --explicit   # explicit markers only
    confbind resolve myapp.settings:AppConfig --source app.yaml --env MYAPP
    confbind resolve myapp.settings:AppConfig --source app.properties --format yaml
"""

import argparse
import importlib
import json
import logging
import sys
from typing import Any, Optional, Sequence

import yaml

from .config import ConfbindConfig, MetadataStrategy
from .container import Container
from .errors import ConfigurationError
from .factory import ConfigurationInitializer, as_dict
from .interfaces import IConfigurationSource, ITypeConverter
from .model import (
    ConfigurationModel,
    SubConfigurationListPropertyModel,
    SubConfigurationPropertyModel,
    ValuePropertyModel,
)
from .sources import EnvironmentConfigurationSource, MapConfigurationSource, MultiConfigurationSource, load_file_source
from .utils import type_name

logger = logging.getLogger(__name__)

INDENT = "  "


def load_shape(spec: str) -> type:
    """Import a configuration shape given as ``module:QualifiedName``.

    Raises:
        ValueError: If ``spec`` is malformed or does not name a class.
    """
    module_name, _, qualname = spec.partition(":")
    if not module_name or not qualname:
        raise ValueError(f"Expected MODULE:SHAPE, got '{spec}'")

    target: Any = importlib.import_module(module_name)
    for part in qualname.split("."):
        target = getattr(target, part)
    if not isinstance(target, type):
        raise ValueError(f"{spec} is not a class")
    return target


def _create_container(args: argparse.Namespace) -> Container:
    config = ConfbindConfig.from_env()
    if args.explicit:
        config.metadata = MetadataStrategy.EXPLICIT
    return Container(config)


# =============================================================================
# describe
# =============================================================================


def describe_model(model: ConfigurationModel, initializer: Optional[ConfigurationInitializer] = None,
                   depth: int = 0) -> list[str]:
    """Render the model tree with the candidate keys of every value property."""
    initializer = initializer or ConfigurationInitializer.for_model(model)
    pad = INDENT * depth
    lines = []
    for prop in model.properties:
        if isinstance(prop, ValuePropertyModel):
            metadata = initializer.value_metadata(prop)
            line = f"{pad}{prop.name}: {type_name(prop.type)}"
            if metadata.default_value.is_present:
                line += f" = {metadata.default_value.get()!r}"
            lines.append(line)
            lines.append(f"{pad}{INDENT}keys: {', '.join(metadata.keys)}")
            if metadata.encryption_provider:
                lines.append(f"{pad}{INDENT}encrypted: {metadata.encryption_provider}")
        elif isinstance(prop, SubConfigurationPropertyModel):
            lines.append(f"{pad}{prop.name}: {type_name(prop.type)}")
            lines.extend(describe_model(prop.model, initializer.sub_configuration(prop), depth + 1))
        elif isinstance(prop, SubConfigurationListPropertyModel):
            size = initializer.list_size_metadata(prop)
            lines.append(f"{pad}{prop.name}: list[{type_name(prop.item_model.type)}] (default size {prop.default_size})")
            lines.append(f"{pad}{INDENT}size keys: {', '.join(size.keys)}")
            lines.append(f"{pad}{INDENT}[0]:")
            lines.extend(describe_model(prop.item_model, initializer.list_item(prop, 0), depth + 2))
    return lines


def cmd_describe(args: argparse.Namespace) -> int:
    """Print the configuration model of a shape."""
    try:
        shape = load_shape(args.shape)
        with _create_container(args) as container:
            model = container.model_provider.get_configuration_model(shape)
    except (ImportError, AttributeError, ValueError, ConfigurationError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    header = type_name(model.type)
    if model.is_abstract:
        header += " (abstract)"
    print(header)
    if model.description:
        print(f"{INDENT}{model.description}")
    for line in describe_model(model, depth=1):
        print(line)
    return 0


# =============================================================================
# resolve
# =============================================================================


def build_source(files: Sequence[str], env_prefix: Optional[str]) -> IConfigurationSource:
    """Combine the environment and files; earlier sources take precedence.

    The environment, when requested, comes first.
    """
    sources: list[IConfigurationSource] = []
    if env_prefix:
        sources.append(EnvironmentConfigurationSource(env_prefix))
    sources.extend(load_file_source(path) for path in files)
    if not sources:
        return MapConfigurationSource()
    if len(sources) == 1:
        return sources[0]
    return MultiConfigurationSource(sources)


def to_plain(value: Any, converter: ITypeConverter) -> Any:
    """Turn resolved values into JSON/YAML friendly data.

    Values other than containers and JSON scalars are written with the
    converter, so that they print as they would be configured.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, dict):
        return {str(key): to_plain(item, converter) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(item, converter) for item in value]
    if converter.is_applicable(type(value)):
        return converter.to_string(type(value), value)
    return str(value)


def cmd_resolve(args: argparse.Namespace) -> int:
    """Resolve a shape against files and the environment and print the values."""
    try:
        shape = load_shape(args.shape)
        source = build_source(args.source or [], args.env)
        with _create_container(args) as container:
            configuration = container.create_configuration(shape, source)
            data = to_plain(as_dict(configuration), container.type_converter)
    except (ImportError, AttributeError, ValueError, ConfigurationError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.format == "yaml":
        print(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), end="")
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="confbind",
        description="confbind: bind configuration sources to typed configuration shapes",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # describe
    describe_parser = subparsers.add_parser(
        "describe", help="Print the model tree and candidate keys of a shape"
    )
    describe_parser.add_argument("shape", help="Configuration shape as MODULE:SHAPE")
    describe_parser.add_argument("--explicit", action="store_true",
                                 help="Use the explicit metadata strategy")

    # resolve
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve a shape and print its values"
    )
    resolve_parser.add_argument("shape", help="Configuration shape as MODULE:SHAPE")
    resolve_parser.add_argument("--source", "-s", action="append", default=None,
                                help="Configuration file (.yaml, .yml, .json, .properties); "
                                     "repeatable, earlier files win")
    resolve_parser.add_argument("--env", type=str, default=None,
                                help="Read environment variables with this prefix first")
    resolve_parser.add_argument("--explicit", action="store_true",
                                help="Use the explicit metadata strategy")
    resolve_parser.add_argument("--format", "-f", choices=["json", "yaml"], default="json",
                                help="Output format (default: json)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "describe":
        sys.exit(cmd_describe(args))
    elif args.command == "resolve":
        sys.exit(cmd_resolve(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
