from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from urllib.parse import quote

from jcr_rest_client.core.codec import decode_query_result
from jcr_rest_client.core.nodes import WorkspaceNode
from jcr_rest_client.core.ports.transport import RequestMethod, Transport
from jcr_rest_client.errors import InvalidLanguageError, InvalidQueryError
from jcr_rest_client.models import QueryRow, Workspace

logger = logging.getLogger(__name__)


class QueryLanguage(str, Enum):
    XPATH = "xpath"
    JCR_SQL = "sql"
    JCR_SQL2 = "JCR-SQL2"
    SEARCH = "Search"


_CONTENT_TYPES = {
    QueryLanguage.XPATH: "application/jcr+xpath",
    QueryLanguage.JCR_SQL: "application/jcr+sql",
    QueryLanguage.JCR_SQL2: "application/jcr+sql2",
    QueryLanguage.SEARCH: "application/jcr+search",
}

VALID_QUERY_LANGUAGES = [lang.value for lang in QueryLanguage]


def resolve_language(language: str | QueryLanguage) -> QueryLanguage:
    if isinstance(language, QueryLanguage):
        return language
    normalized = language.strip().lower()
    for candidate in QueryLanguage:
        if candidate.value.lower() == normalized:
            return candidate
    raise InvalidLanguageError(language, VALID_QUERY_LANGUAGES)


def content_type_for(language: str | QueryLanguage) -> str:
    return _CONTENT_TYPES[resolve_language(language)]


def build_query_url(
    base_url: str,
    offset: int = 0,
    limit: int = -1,
    variables: Mapping[str, str] | None = None,
) -> str:
    """Append ``offset``, ``limit`` and bound variables to ``base_url`` as a query string.

    ``offset`` is written only when positive and ``limit`` only when not
    negative. Variables with a blank name or value are skipped.
    """
    url = [base_url]
    wrote_first_param = False

    def _param(name: str, value: str) -> None:
        nonlocal wrote_first_param
        url.append("&" if wrote_first_param else "?")
        wrote_first_param = True
        url.append(f"{name}={value}")

    if offset > 0:
        _param("offset", str(offset))
    if limit >= 0:
        _param("limit", str(limit))
    for name, value in (variables or {}).items():
        if not name or not name.strip():
            continue
        if value is None or not str(value).strip():
            continue
        _param(quote(name, safe=""), quote(str(value), safe=""))
    return "".join(url)


def _submit(
    transport: Transport,
    workspace: Workspace,
    url: str,
    content_type: str,
    statement: str,
) -> str:
    with transport.connect(workspace.server, url, RequestMethod.POST) as connection:
        connection.set_content_type(content_type)
        connection.write(statement.encode("utf-8"))
        status = connection.response_status()
        logger.debug("query: status=%s", status)
        response = connection.read()
    if status != 200:
        logger.debug("Error while executing query %r against %s: %s", statement, url, response)
        raise InvalidQueryError(response, status)
    return response


def query(
    transport: Transport,
    workspace: Workspace,
    language: str | QueryLanguage,
    statement: str,
    offset: int = 0,
    limit: int = -1,
    variables: Mapping[str, str] | None = None,
) -> list[QueryRow]:
    """Run ``statement`` in ``workspace`` and decode the result rows."""
    content_type = content_type_for(language)
    logger.debug(
        "query: workspace=%s, language=%s, statement=%s, offset=%s, limit=%s",
        workspace.name,
        language,
        statement,
        offset,
        limit,
    )
    url = build_query_url(WorkspaceNode(workspace).query_url(), offset, limit, variables)
    return decode_query_result(_submit(transport, workspace, url, content_type, statement))


def plan_for_query(
    transport: Transport,
    workspace: Workspace,
    language: str | QueryLanguage,
    statement: str,
    offset: int = 0,
    limit: int = -1,
    variables: Mapping[str, str] | None = None,
) -> str:
    """Return the server's plan for ``statement`` as unparsed text."""
    content_type = content_type_for(language)
    logger.debug(
        "plan_for_query: workspace=%s, language=%s, statement=%s, offset=%s, limit=%s",
        workspace.name,
        language,
        statement,
        offset,
        limit,
    )
    url = build_query_url(WorkspaceNode(workspace).query_plan_url(), offset, limit, variables)
    return _submit(transport, workspace, url, content_type, statement)
