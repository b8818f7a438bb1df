"""Naming rules for generated projects, classes, methods and fields.

Examples:
  "Pet Store API"      -> project  pet-store-api-tests
  "/users/{id}"        -> group    users            -> class UsersApiTest
  "/"                  -> group    root
  "list-pets"          -> method   testListPets
  "first-name"         -> field    firstName
"""

import re

ROOT_GROUP = "root"

_JAVA_KEYWORDS = frozenset(
    """
    abstract assert boolean break byte case catch char class const continue
    default do double else enum extends final finally float for goto if
    implements import instanceof int interface long native new package private
    protected public return short static strictfp super switch synchronized
    this throw throws transient try void volatile while true false null var
    record yield
    """.split()
)


def to_project_name(title: str, suffix: str = "-tests") -> str:
    """Turn an API title into a filesystem-safe project name."""
    base = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return f"{base or 'api'}{suffix}"


def resource_group(path: str) -> str:
    """Group key of a path: its first non-empty segment, braces stripped, lower-cased."""
    if not path or not path.strip() or path.strip() == "/":
        return ROOT_GROUP
    for segment in path.split("/"):
        segment = re.sub(r"[{}]", "", segment).strip()
        if segment:
            return segment.lower()
    return ROOT_GROUP


def capitalise(word: str) -> str:
    """Upper-case the first character and leave the rest alone."""
    if not word:
        return ""
    return word[0].upper() + word[1:]


def to_class_name(name: str) -> str:
    """PascalCase a resource or schema name into a Java class name."""
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", name or "") if p]
    if not parts:
        return "Unknown"
    class_name = "".join(capitalise(p) for p in parts)
    if class_name[0].isdigit():
        class_name = "Api" + class_name
    return class_name


def sanitize_method_name(operation_id: str) -> str:
    """Turn an operationId into a PascalCase token usable inside a method name."""
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", operation_id or "") if p]
    if not parts:
        return "UnknownOperation"
    return "".join(capitalise(p) for p in parts)


def method_name_for(operation_id: str) -> str:
    return "test" + sanitize_method_name(operation_id)


def to_field_name(name: str) -> str:
    """camelCase a JSON property name into a legal Java identifier."""
    parts = [p for p in re.split(r"[^A-Za-z0-9_$]+", name or "") if p]
    if not parts:
        return "value"
    field = parts[0] + "".join(capitalise(p) for p in parts[1:])
    if field[0].isdigit():
        field = "_" + field
    if field in _JAVA_KEYWORDS:
        field += "_"
    return field


def deduplicate(names: list[str]) -> list[str]:
    """Make names unique by appending a counter to repeats, keeping order."""
    seen: dict[str, int] = {}
    taken = set(names)
    result = []
    for name in names:
        if name not in seen:
            seen[name] = 1
            result.append(name)
            continue
        count = seen[name]
        candidate = f"{name}{count + 1}"
        while candidate in taken:
            count += 1
            candidate = f"{name}{count + 1}"
        seen[name] = count + 1
        taken.add(candidate)
        result.append(candidate)
    return result
