"""Schema registry and shape-based schema detection."""

from __future__ import annotations

import dataclasses
import logging
import re
import time
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import PurePosixPath

from jsonkit.processor import JsonProcessingError, parse_json
from jsonkit.storage import KeyValueStore

logger = logging.getLogger(__name__)

USER_SCHEMAS_KEY = "jsonkit-schemas"


def _file_match_from(raw: object) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        logger.warning("fileMatch %r stored as a string, treating it as one glob", raw)
        return (raw,)
    if isinstance(raw, (list, tuple)) and all(isinstance(p, str) for p in raw):
        return tuple(raw)
    raise TypeError(f"fileMatch must be a list of strings, got {raw!r}")


@dataclass(frozen=True)
class SchemaDescriptor:
    """Metadata for a schema that is either remote (uri) or inline (schema)."""

    id: str
    name: str
    description: str | None = None
    uri: str | None = None
    schema: dict | None = None
    file_match: tuple[str, ...] = ()
    predefined: bool = False
    detect_pattern: str | None = None  # regex tried against the raw text

    def to_dict(self) -> dict:
        data: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "fileMatch": list(self.file_match),
            "predefined": self.predefined,
        }
        for key, value in (
            ("description", self.description),
            ("uri", self.uri),
            ("schema", self.schema),
            ("detectPattern", self.detect_pattern),
        ):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> SchemaDescriptor:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=data.get("description"),
            uri=data.get("uri"),
            schema=data.get("schema"),
            file_match=_file_match_from(data.get("fileMatch")),
            predefined=bool(data.get("predefined", False)),
            detect_pattern=data.get("detectPattern"),
        )


def _predefined(
    schema_id: str, uri: str, file_match: tuple[str, ...], name: str, description: str
) -> SchemaDescriptor:
    return SchemaDescriptor(
        id=schema_id,
        name=name,
        description=description,
        uri=uri,
        file_match=file_match,
        predefined=True,
    )


PREDEFINED_SCHEMAS: tuple[SchemaDescriptor, ...] = (
    _predefined(
        "package.json",
        "https://json.schemastore.org/package.json",
        ("package.json",),
        "NPM package",
        "npm package manifest",
    ),
    _predefined(
        "tsconfig.json",
        "https://json.schemastore.org/tsconfig.json",
        ("tsconfig.json",),
        "TypeScript config",
        "TypeScript compiler configuration",
    ),
    _predefined(
        "eslintrc.json",
        "https://json.schemastore.org/eslintrc.json",
        (".eslintrc", ".eslintrc.json"),
        "ESLint config",
        "ESLint configuration",
    ),
    _predefined(
        "prettierrc.json",
        "https://json.schemastore.org/prettierrc.json",
        (".prettierrc", ".prettierrc.json"),
        "Prettier config",
        "Prettier configuration",
    ),
    _predefined(
        "swagger.json",
        "https://json.schemastore.org/swagger-2.0.json",
        ("swagger.json",),
        "Swagger 2.0",
        "Swagger 2.0 API description",
    ),
    _predefined(
        "openapi.json",
        "https://json.schemastore.org/openapi-3.0.json",
        ("openapi.json",),
        "OpenAPI 3.0",
        "OpenAPI 3.0 API description",
    ),
    _predefined(
        "github-workflow",
        "https://json.schemastore.org/github-workflow.json",
        (".github/workflows/*.yml", ".github/workflows/*.yaml"),
        "GitHub workflow",
        "GitHub Actions workflow",
    ),
    _predefined(
        "docker-compose",
        "https://json.schemastore.org/docker-compose.json",
        ("docker-compose.yml", "docker-compose.yaml"),
        "Docker Compose",
        "Docker Compose configuration",
    ),
)


class SchemaRegistry:
    """Predefined schemas plus user-registered ones.

    Persistence is explicit: ``load`` and ``save`` talk to a KeyValueStore,
    mutations only touch memory.
    """

    def __init__(
        self,
        user_schemas: list[SchemaDescriptor] | None = None,
        predefined: tuple[SchemaDescriptor, ...] = PREDEFINED_SCHEMAS,
    ) -> None:
        self._predefined = predefined
        self._user: list[SchemaDescriptor] = list(user_schemas or [])

    @classmethod
    def load(cls, store: KeyValueStore) -> SchemaRegistry:
        raw = store.get(USER_SCHEMAS_KEY)
        if raw is None:
            return cls()
        if not isinstance(raw, list):
            logger.warning("ignoring stored schemas: expected a list")
            return cls()

        user: list[SchemaDescriptor] = []
        for entry in raw:
            try:
                descriptor = SchemaDescriptor.from_dict(entry)
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning("skipping malformed stored schema %r: %s", entry, e)
                continue
            user.append(dataclasses.replace(descriptor, predefined=False))
        return cls(user)

    def save(self, store: KeyValueStore) -> None:
        store.set(USER_SCHEMAS_KEY, [s.to_dict() for s in self._user])

    # -- Queries -----------------------------------------------------------

    def all(self) -> list[SchemaDescriptor]:
        return [*self._predefined, *self._user]

    def user_schemas(self) -> list[SchemaDescriptor]:
        return self._user[:]

    def get(self, schema_id: str) -> SchemaDescriptor | None:
        for descriptor in self.all():
            if descriptor.id == schema_id:
                return descriptor
        return None

    def for_file(self, filename: str) -> SchemaDescriptor | None:
        """First schema whose fileMatch glob matches *filename*."""
        path = PurePosixPath(filename.replace("\\", "/"))
        full = str(path)
        for descriptor in self.all():
            for pattern in descriptor.file_match:
                if (
                    fnmatch(path.name, pattern)
                    or fnmatch(full, pattern)
                    or fnmatch(full, f"*/{pattern}")
                ):
                    return descriptor
        return None

    # -- Mutations ---------------------------------------------------------

    def _new_id(self) -> str:
        base = f"user-schema-{int(time.time() * 1000)}"
        schema_id = base
        suffix = 2
        while self.get(schema_id) is not None:
            schema_id = f"{base}-{suffix}"
            suffix += 1
        return schema_id

    def add(
        self,
        name: str,
        *,
        uri: str | None = None,
        schema: dict | None = None,
        description: str | None = None,
        file_match: tuple[str, ...] | list[str] = (),
        detect_pattern: str | None = None,
    ) -> SchemaDescriptor:
        if (uri is None) == (schema is None):
            raise ValueError("exactly one of uri or schema must be given")
        descriptor = SchemaDescriptor(
            id=self._new_id(),
            name=name,
            description=description,
            uri=uri,
            schema=schema,
            file_match=tuple(file_match),
            predefined=False,
            detect_pattern=detect_pattern,
        )
        self._user.append(descriptor)
        return descriptor

    def update(self, schema_id: str, **changes: object) -> SchemaDescriptor:
        if "id" in changes or "predefined" in changes:
            raise ValueError("id and predefined cannot be changed")
        for i, descriptor in enumerate(self._user):
            if descriptor.id == schema_id:
                if "file_match" in changes:
                    changes["file_match"] = tuple(changes["file_match"])
                updated = dataclasses.replace(descriptor, **changes)
                self._user[i] = updated
                return updated
        if any(d.id == schema_id for d in self._predefined):
            raise ValueError(f"predefined schema {schema_id!r} is read-only")
        raise KeyError(schema_id)

    def remove(self, schema_id: str) -> bool:
        before = len(self._user)
        self._user = [d for d in self._user if d.id != schema_id]
        return len(self._user) != before


# -- Detection --------------------------------------------------------------


def _truthy(value: object) -> bool:
    # Empty containers count as present: {"dependencies": {}} is a manifest.
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0
    return True


@dataclass(frozen=True)
class DetectionRule:
    """Document shape that identifies a predefined schema."""

    schema_id: str
    required_keys: tuple[str, ...] = field(default_factory=tuple)

    def matches(self, document: object) -> bool:
        if not isinstance(document, dict):
            return False
        return all(_truthy(document.get(key)) for key in self.required_keys)


DETECTION_RULES: tuple[DetectionRule, ...] = (
    DetectionRule("package.json", ("name", "version", "dependencies")),
    DetectionRule("tsconfig.json", ("compilerOptions", "include")),
    DetectionRule("eslintrc.json", ("rules", "extends")),
    DetectionRule("swagger.json", ("swagger", "info", "paths")),
    DetectionRule("openapi.json", ("openapi", "info", "paths")),
)


def detect_schema(
    text: str,
    registry: SchemaRegistry | None = None,
    rules: tuple[DetectionRule, ...] = DETECTION_RULES,
) -> str | None:
    """Guess which schema *text* conforms to. Never raises.

    Shape rules run first, then each user schema's detect pattern against
    the raw text.
    """
    try:
        document = parse_json(text)
    except JsonProcessingError:
        logger.debug("schema detection skipped: text is not valid JSON")
        return None

    for rule in rules:
        if rule.matches(document):
            return rule.schema_id

    if registry is None:
        return None
    for descriptor in registry.user_schemas():
        if not descriptor.detect_pattern:
            continue
        try:
            if re.search(descriptor.detect_pattern, text):
                return descriptor.id
        except re.error as e:
            logger.debug(
                "ignoring invalid detect pattern of %s: %s", descriptor.id, e
            )
    return None


def diagnostics_options(
    registry: SchemaRegistry, schema_id: str | None = None
) -> dict:
    """Diagnostics settings for the editing widget with *schema_id* applied."""
    options: dict[str, object] = {
        "validate": True,
        "allowComments": False,
        "schemas": [],
        "enableSchemaRequest": True,
    }
    if schema_id is None:
        return options

    descriptor = registry.get(schema_id)
    if descriptor is None:
        logger.warning("unknown schema id %r, clearing schemas", schema_id)
        return options

    entry: dict[str, object] = {
        "uri": descriptor.uri or f"jsonkit://schemas/{descriptor.id}",
        "fileMatch": list(descriptor.file_match) or ["*"],
    }
    if descriptor.schema is not None:
        entry["schema"] = descriptor.schema
    options["schemas"] = [entry]
    return options
