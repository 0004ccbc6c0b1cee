"""GraphQL schema merging for subgraph-deploy."""

import logging
from copy import copy
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from graphql import GraphQLSyntaxError, parse, print_ast
from graphql.language import (
    DefinitionNode,
    DirectiveDefinitionNode,
    DocumentNode,
    Node,
    ObjectTypeDefinitionNode,
    TypeExtensionNode,
    Visitor,
    visit,
)

from .exceptions import SchemaConflictError, SchemaError
from .types import ManifestDocument

logger = logging.getLogger(__name__)

AUTOGEN_NOTICE = '""" THIS FILE IS AUTOMATICALLY GENERATED BY THE DEPLOY SCRIPT """\n\n'

ENTITY_DIRECTIVE = "entity"


class _DropDescriptions(Visitor):
    def leave(self, node: Node, *_args):
        if getattr(node, "description", None) is not None:
            node = copy(node)
            node.description = None
            return node
        return None


def _definition_key(definition: DefinitionNode) -> str:
    # Types of every kind share one namespace; directives have their own
    name = getattr(definition, "name", None)
    if name is None:
        return definition.kind
    if isinstance(definition, DirectiveDefinitionNode):
        return f"@{name.value}"
    if isinstance(definition, TypeExtensionNode):
        return f"extend {name.value}"
    return name.value


def _shape(definition: DefinitionNode) -> str:
    """Printed definition without descriptions."""
    return print_ast(visit(definition, _DropDescriptions()))


def merge_type_defs(texts: Sequence[str]) -> DocumentNode:
    """
    Merge type-definition documents into one, each definition once.

    Definitions are matched by name, whatever their kind. A repeat with the
    same shape as the first one (descriptions, whitespace and comments aside)
    is dropped; output keeps first-seen order.

    Args:
        texts: GraphQL SDL documents, in merge order

    Returns:
        The merged document

    Raises:
        SchemaError: If a document cannot be parsed
        SchemaConflictError: If the same name is defined with different shapes
    """
    merged: Dict[str, Tuple[DefinitionNode, str]] = {}

    for index, text in enumerate(texts):
        try:
            document = parse(text, no_location=True)
        except GraphQLSyntaxError as e:
            raise SchemaError(f"Type-definition document #{index} is invalid: {e.message}") from e

        for definition in document.definitions:
            key = _definition_key(definition)
            shape = _shape(definition)
            if key not in merged:
                merged[key] = (definition, shape)
                continue
            first, first_shape = merged[key]
            if first_shape != shape:
                raise SchemaConflictError(key, print_ast(first), print_ast(definition))
            logger.debug("Dropping duplicate definition of %s", key)

    return DocumentNode(definitions=tuple(definition for definition, _ in merged.values()))


def print_schema_document(document: DocumentNode) -> str:
    """Print a merged document with the auto-generated marker in front."""
    return AUTOGEN_NOTICE + print_ast(document).rstrip("\n") + "\n"


def merge_schema_files(sources: Sequence[Union[Path, str]]) -> DocumentNode:
    """Read schema files in order and merge them."""
    return merge_type_defs([Path(source).read_text() for source in sources])


def write_schema_document(document: DocumentNode, output: Union[Path, str]) -> Path:
    """
    Write a merged schema artifact, replacing the previous file.

    Returns:
        Path of the written file
    """
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(print_schema_document(document))
    logger.info("Wrote %d definitions to %s", len(document.definitions), output)
    return output


def write_merged_schema(sources: Sequence[Union[Path, str]], output: Union[Path, str]) -> Path:
    """
    Merge schema files and write the result.

    Args:
        sources: Schema files in merge order
        output: Path of the merged schema

    Returns:
        Path of the written file
    """
    return write_schema_document(merge_schema_files(sources), output)


def entity_names(document: DocumentNode) -> List[str]:
    """Names of object types marked with @entity."""
    return [
        definition.name.value
        for definition in document.definitions
        if isinstance(definition, ObjectTypeDefinitionNode)
        and any(directive.name.value == ENTITY_DIRECTIVE for directive in definition.directives or ())
    ]


def missing_entities(entities: Iterable[str], document: DocumentNode) -> List[str]:
    """Entities from the given list that the schema does not define."""
    defined = set(entity_names(document))
    return [entity for entity in entities if entity not in defined]


def manifest_missing_entities(manifest: ManifestDocument, document: DocumentNode) -> List[str]:
    """Entities referenced anywhere in a manifest that the schema does not define."""
    return missing_entities(manifest.entities(), document)
