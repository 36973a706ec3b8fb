"""
===========================================================
Data Definition Language (DDL) rendering from SQL templates.
===========================================================

Renders the database- and schema-level DDL statements issued by the
lifecycle orchestrator. Database and schema names cannot be sent as bound
parameters, so every statement is produced by plain string substitution
into the templates shipped under ``pglit/sql/templates/``.

Templates and their tokens:
    create_or_drop_db.sql: ``$action`` and ``$db_name``
    create_schema.sql: ``$schema``
    set_search_path.sql: ``$schema_name``

Every occurrence of a token is replaced. All identifier handling goes
through :func:`format_identifier` so there is exactly one place that
decides whether a name is quoted.

Example:
    >>> from pglit.sql.ddl import Action, database_statement
    >>>
    >>> database_statement(Action.CREATE, 'warehouse')
    'CREATE DATABASE warehouse;'
    >>> database_statement(Action.FORCE_DROP, 'warehouse')
    'DROP DATABASE warehouse WITH (FORCE);'
    >>> database_statement(Action.CREATE, 'Mixed-Case', quote=True)
    'CREATE DATABASE "Mixed-Case";'
"""

import logging
from enum import Enum
from functools import lru_cache
from importlib import resources
from typing import Iterable, List

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = 'public'
FORCE_CLAUSE = 'WITH (FORCE)'


class Action(Enum):
    """DDL action applied to a database."""

    CREATE = 'CREATE'
    DROP = 'DROP'
    FORCE_DROP = 'FORCE_DROP'

    @property
    def verb(self) -> str:
        """SQL verb substituted for ``$action``."""
        return 'DROP' if self is Action.FORCE_DROP else self.value


@lru_cache(maxsize=None)
def load_template(name: str) -> str:
    """Read a SQL template shipped with the package.

    Args:
        name: Template file name (e.g. 'create_or_drop_db.sql')

    Returns:
        Raw template text
    """
    return resources.files('pglit.sql').joinpath('templates').joinpath(name).read_text(encoding='utf-8')


def render_template(template: str, **tokens: str) -> str:
    """Substitute ``$token`` placeholders in a template.

    Longer token names are replaced first so ``$schema_name`` is never
    clobbered by ``$schema``.
    """
    rendered = template
    for token in sorted(tokens, key=len, reverse=True):
        rendered = rendered.replace(f'${token}', tokens[token])
    return rendered


def format_identifier(name: str, quote: bool = False) -> str:
    """Prepare a database or schema name for substitution into DDL.

    Unquoted names are used verbatim and are subject to the server's
    identifier folding (lower-casing, no hyphens). Quoted names keep their
    case and may contain special characters; embedded double quotes are
    stripped first so the name cannot close the quoted identifier.

    Args:
        name: Identifier as supplied by the caller
        quote: If True, wrap the name in double quotes

    Returns:
        Identifier text ready for template substitution

    Raises:
        ValueError: If the name is empty
    """
    if not name:
        raise ValueError("Identifier must not be empty")

    if not quote:
        return name

    stripped = name.replace('"', '')
    if stripped != name:
        logger.warning(f"Stripped double quotes from identifier {name!r}")
    if not stripped:
        raise ValueError(f"Identifier {name!r} is empty once quotes are stripped")
    return f'"{stripped}"'


def database_statement(action: Action, db_name: str, quote: bool = False) -> str:
    """Render a CREATE / DROP / DROP ... WITH (FORCE) DATABASE statement.

    Args:
        action: Requested lifecycle action
        db_name: Target database name (must not be empty)
        quote: If True, emit the name as a quoted identifier

    Returns:
        Single DDL statement terminated by a semicolon

    Raises:
        ValueError: If db_name is empty

    Example:
        >>> database_statement(Action.DROP, 'pglit_db_test')
        'DROP DATABASE pglit_db_test;'
    """
    if not db_name:
        raise ValueError("The database name should not be empty")

    statement = render_template(
        load_template('create_or_drop_db.sql'),
        action=action.verb,
        db_name=format_identifier(db_name, quote=quote),
    ).strip()

    if action is Action.FORCE_DROP:
        statement = f"{statement.rstrip(';')} {FORCE_CLAUSE};"

    return statement


def create_schema_statement(schema: str, quote: bool = False) -> str:
    """Render a CREATE SCHEMA IF NOT EXISTS statement for one schema."""
    return render_template(
        load_template('create_schema.sql'),
        schema=format_identifier(schema, quote=quote),
    ).strip()


def search_path_statement(schemas: Iterable[str], quote: bool = False) -> str:
    """Render a SET search_path statement.

    The given schemas come first, followed by the default schema.

    Args:
        schemas: Schema names in search order
        quote: If True, emit the names as quoted identifiers

    Returns:
        SET search_path statement

    Example:
        >>> search_path_statement(['bronze', 'silver'])
        'SET search_path TO bronze, silver, public;'
    """
    path: List[str] = [format_identifier(schema, quote=quote) for schema in schemas]
    path.append(DEFAULT_SCHEMA)
    return render_template(
        load_template('set_search_path.sql'),
        schema_name=', '.join(path),
    ).strip()


def create_schemas_batch(schemas: Iterable[str], set_as_default: bool = False, quote: bool = False) -> str:
    """Build a single batch that creates several schemas.

    Empty names in the list are skipped. When ``set_as_default`` is True a
    SET search_path statement listing the created schemas (then the
    default schema) is appended.

    Args:
        schemas: Schema names to create
        set_as_default: Also update the session search path
        quote: If True, emit the names as quoted identifiers

    Returns:
        Newline-separated batch of statements

    Raises:
        ValueError: If no non-empty schema name is given
    """
    names = [schema for schema in schemas if schema]
    if not names:
        raise ValueError("At least one schema name is required")

    statements = [create_schema_statement(name, quote=quote) for name in names]
    if set_as_default:
        statements.append(search_path_statement(names, quote=quote))

    return "\n".join(statements)
