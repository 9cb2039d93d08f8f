import math
import ast

from typing import Optional, Union, List, Dict, Tuple, Any
from contextvars import ContextVar
from treeslicer.tree import Node

# Parsing behavior flag (context-local, controlled by parse_newick)
_TREAT_ZERO_AS_EPSILON: ContextVar[bool] = ContextVar(
    "_TREAT_ZERO_AS_EPSILON", default=False
)

# Stand-in length for unparseable or non-finite branch lengths
EPSILON_LENGTH = 0.000005


# ===================================================================
# 1. METADATA PROCESSING FUNCTIONS
# ===================================================================


def split_token(token: str) -> Tuple[str, Any]:
    """
    Split a metadata token into name and value parts.

    Handles "name=value" and "name:value" tokens. BEAST-style annotations
    carry a leading "&" on the key ("&date=2018.5"), which is dropped.

    Args:
        token: A string token in format "name=value" or "name:value"

    Returns:
        Tuple of (name, parsed_value) where parsed_value could be string, int, or float
    """
    if "=" in token:
        name, value = token.split("=", 1)
    elif ":" in token:
        name, value = token.split(":", 1)
    else:
        return token.lstrip("&"), True

    try:
        # Handles quoted strings and numbers
        parsed_value = ast.literal_eval(value)
    except (ValueError, SyntaxError):
        parsed_value = value

    return name.strip().lstrip("&"), parsed_value


def parse_metadata(data: str) -> Dict[str, Any]:
    """
    Parse a metadata string into a dictionary.

    Args:
        data: String containing metadata in format "&key1=value1,key2=value2"
              or NHX format "&&NHX:key1=value1:key2=value2"

    Returns:
        Dictionary mapping keys to their parsed values
    """
    data = data.strip()
    if data.startswith("&&NHX:"):
        token_strings = data[6:].split(":")
        result: Dict[str, Any] = {}
        for token in token_strings:
            if "=" in token:
                key, value = split_token(token)
                result[key] = value
        return result

    # Spaces and semicolons act as separators too
    data = data.replace(";", ",").replace(" ", ",")
    return dict(split_token(token) for token in data.split(",") if token.strip())


def flush_meta_buffer(meta_buffer: List[str], stack: List[Node]) -> None:
    """
    Process the metadata buffer and update the current node's metadata.

    Args:
        meta_buffer: List of characters that form the metadata content
        stack: The current stack of nodes being processed
    """
    metadata = parse_metadata("".join(meta_buffer))

    if metadata and stack:
        stack[-1].values.update(metadata)

    meta_buffer.clear()


# ===================================================================
# 2. BUFFER PROCESSING FUNCTIONS
# ===================================================================


def flush_character_buffer(buffer: List[str], stack: List[Node]) -> None:
    """
    Assign the buffered characters as the name of the current node.

    Args:
        buffer: List of characters to join and assign as node name
        stack: The current stack of nodes being processed
    """
    if not stack:
        # Between trees
        buffer.clear()
        return

    if buffer:
        stack[-1].name = "".join(buffer).strip().strip("'\"")

    buffer.clear()


def flush_length_buffer(buffer: List[str], stack: List[Node]) -> None:
    """
    Parse the buffered characters as the branch length of the current node.

    Null-like tokens, non-numeric tokens and inf/nan are replaced by a tiny
    positive length so the topology survives. Explicit zeros are kept unless
    parse_newick was asked to treat them as epsilon.

    Args:
        buffer: List of characters to join and parse as branch length
        stack: The current stack of nodes being processed
    """
    if not stack:
        buffer.clear()
        return

    buffer_value = "".join(buffer).strip()

    null_like = {"", "null", "NULL", "none", "None"}
    if buffer_value in null_like:
        stack[-1].length = EPSILON_LENGTH
        buffer.clear()
        return

    try:
        parsed_number = float(buffer_value)
        if math.isinf(parsed_number) or math.isnan(parsed_number):
            parsed_number = EPSILON_LENGTH
        if parsed_number == 0.0 and _TREAT_ZERO_AS_EPSILON.get():
            parsed_number = EPSILON_LENGTH
        stack[-1].length = parsed_number
    except ValueError:
        stack[-1].length = EPSILON_LENGTH
    buffer.clear()


def flush_buffer(buffer: List[str], stack: List[Node], mode: str) -> None:
    """
    Process the accumulated buffer based on the current parsing mode.

    Args:
        buffer: List of characters accumulated during parsing
        stack: The current stack of nodes being processed
        mode: Current parsing mode ("character_reader" or "length_reader")
    """
    if mode == "character_reader":
        flush_character_buffer(buffer, stack)
    elif mode == "length_reader":
        flush_length_buffer(buffer, stack)


# ===================================================================
# 3. NODE STACK MANAGEMENT FUNCTIONS
# ===================================================================


def init_nodestack() -> List[Node]:
    """
    Initialize the node stack with the root node.

    The root stands for the outermost pair of parentheses; its length is
    irrelevant for heights.
    """
    root = Node(name="", length=0.0)
    return [root]


def create_new_node(
    stack: List[Node], buffer: List[str], mode: str, default_length: float
) -> Tuple[List[Node], List[str], str]:
    """
    Create a new node below the current top of the stack and push it.

    Args:
        stack: The current stack of nodes being processed
        buffer: The current character buffer
        mode: The current parsing mode
        default_length: The default branch length to use for new nodes

    Returns:
        A tuple of (stack, buffer, mode) with the new node added to the stack
    """
    parent = stack[-1]
    new_node = Node(length=default_length)

    # Direct append: caches are cleared once the tree is complete
    parent.children.append(new_node)
    new_node.parent = parent

    stack.append(new_node)
    return stack, buffer, mode


def close_node(
    stack: List[Node], buffer: List[str], mode: str
) -> Tuple[List[Node], List[str], str]:
    """Close the current node by removing it from the stack."""
    stack.pop()
    return stack, buffer, mode


# ===================================================================
# 4. CORE PARSING FUNCTIONS
# ===================================================================


def _parse_newick(tokens: str, default_length: float) -> List[Node]:
    """
    Return a list of top-level Node trees from the token string.

    Args:
        tokens: Raw Newick format string
        default_length: Default branch length for nodes without explicit lengths

    Returns:
        List of parsed Node trees
    """
    trees: List[Node] = []
    buffer: List[str] = []
    meta_buffer: List[str] = []
    mode: str = "character_reader"
    node_stack: List[Node] = init_nodestack()

    for char in tokens:
        if char in "\n\r":
            continue

        elif mode == "metadata_reader" and char != "]":
            meta_buffer.append(char)

        elif char == "(":
            if len(node_stack) == 0:
                node_stack = init_nodestack()
            node_stack, buffer, mode = create_new_node(
                node_stack, buffer, mode, default_length
            )
            mode = "character_reader"

        elif char == ")":
            flush_buffer(buffer, node_stack, mode)
            # The root is never popped here
            if len(node_stack) > 1:
                close_node(node_stack, buffer, mode)
            mode = "character_reader"

        elif char == ",":
            flush_buffer(buffer, node_stack, mode)
            if len(node_stack) > 1:
                close_node(node_stack, buffer, mode)
            node_stack, buffer, mode = create_new_node(
                node_stack, buffer, mode, default_length
            )
            mode = "character_reader"

        elif char == ":":
            flush_buffer(buffer, node_stack, mode)
            mode = "length_reader"

        elif char == "[":
            flush_buffer(buffer, node_stack, mode)
            mode = "metadata_reader"

        elif char == "]":
            flush_meta_buffer(meta_buffer, node_stack)
            mode = "character_reader"

        elif char == ";":
            flush_buffer(buffer, node_stack, mode)
            while len(node_stack) > 1:
                close_node(node_stack, buffer, mode)
            if len(node_stack) == 1:
                trees.append(node_stack.pop())

            # Reset parser state for the next tree
            node_stack = []
            buffer = []
            meta_buffer = []
            mode = "character_reader"

        elif mode == "length_reader" and char.isspace():
            continue
        else:
            buffer.append(char)

    if mode == "metadata_reader":
        raise ValueError("Unterminated metadata block in Newick string")

    if node_stack and (node_stack[0].children or buffer):
        flush_buffer(buffer, node_stack, mode)
        while len(node_stack) > 1:
            close_node(node_stack, buffer, mode)
        trees.append(node_stack.pop())

    return trees


# ===================================================================
# 5. PUBLIC API FUNCTIONS
# ===================================================================


def parse_newick(
    tokens: str,
    default_length: float = 1.0,
    force_list: bool = False,
    treat_zero_as_epsilon: bool = False,
) -> Union[Node, List[Node]]:
    """
    Parse a Newick string into a tree or list of trees.

    Args:
        tokens: Newick format string, one or more trees separated by ";"
        default_length: Default branch length for nodes without explicit lengths
        force_list: Always return a list even for single trees
        treat_zero_as_epsilon: Replace explicit zero branch lengths by a tiny
            positive length

    Returns:
        Single Node or list of Nodes representing parsed tree(s)

    Raises:
        ValueError: If the string holds no tree or an unterminated metadata block
    """
    token = _TREAT_ZERO_AS_EPSILON.set(bool(treat_zero_as_epsilon))
    try:
        trees: List[Node] = _parse_newick(tokens, default_length=default_length)
    finally:
        # Restore previous behavior to avoid leaking state across calls
        _TREAT_ZERO_AS_EPSILON.reset(token)

    if not trees:
        raise ValueError("No tree found in Newick string")

    for tree in trees:
        tree.invalidate_caches(propagate_up=False, propagate_down=True)

    if len(trees) == 1 and not force_list:
        return trees[0]
    return trees
