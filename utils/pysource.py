"""Helpers for splitting, inspecting and renaming generated Python source."""

import ast
import io
import re
import tokenize

_IMPORT_LINE = re.compile(r"^(?:import\s+[\w.]|from\s+[\w.]+\s+import\s)")
_MAIN_GUARD_LINE = re.compile(r"""^if\s+__name__\s*==\s*["']__main__["']\s*:""")
_DECL_LINE = re.compile(r"^(?:async\s+)?(class|def)\s+([A-Za-z_]\w*)", re.MULTILINE)
_CONST_LINE = re.compile(r"^([A-Za-z_]\w*)\s*(?::[^=\n]+)?=(?!=)", re.MULTILINE)


def is_valid_python(source):
    try:
        ast.parse(source or "")
    except (SyntaxError, ValueError):
        return False
    return True


def _is_main_guard(node):
    if not isinstance(node, ast.If):
        return False
    test = node.test
    return (
        isinstance(test, ast.Compare)
        and isinstance(test.left, ast.Name)
        and test.left.id == "__name__"
        and len(test.comparators) == 1
        and isinstance(test.comparators[0], ast.Constant)
        and test.comparators[0].value == "__main__"
    )


def top_level_names(source):
    """Return the names of top-level classes, functions and assignments, in order."""
    try:
        tree = ast.parse(source or "")
    except (SyntaxError, ValueError):
        names = [m.group(2) for m in _DECL_LINE.finditer(source or "")]
        names += [m.group(1) for m in _CONST_LINE.finditer(source or "")]
        return list(dict.fromkeys(names))

    names = []
    for node in tree.body:
        if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            names.append(node.name)
        elif isinstance(node, ast.Assign):
            names.extend(t.id for t in node.targets if isinstance(t, ast.Name))
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            names.append(node.target.id)
    return list(dict.fromkeys(names))


def declared_names(source):
    """Return the names of top-level classes and functions only."""
    try:
        tree = ast.parse(source or "")
    except (SyntaxError, ValueError):
        return list(dict.fromkeys(m.group(2) for m in _DECL_LINE.finditer(source or "")))
    return [
        node.name for node in tree.body
        if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef))
    ]


def primary_name(source):
    """Return the first top-level class name, else the first function name."""
    decls = _DECL_LINE.findall(source or "")
    for kind, name in decls:
        if kind == "class":
            return name
    return decls[0][1] if decls else None


def class_bases(source, class_name):
    """Return the base class expressions of a top-level class as strings."""
    try:
        tree = ast.parse(source or "")
    except (SyntaxError, ValueError):
        match = re.search(rf"^class\s+{re.escape(class_name)}\s*\(([^)]*)\)", source or "", re.MULTILINE)
        return [b.strip() for b in match.group(1).split(",")] if match else []
    for node in tree.body:
        if isinstance(node, ast.ClassDef) and node.name == class_name:
            return [ast.unparse(b) for b in node.bases]
    return []


def has_main_guard(source):
    return any(_MAIN_GUARD_LINE.match(line) for line in (source or "").splitlines())


def split_module(source):
    """Split source into (imports, body, main_guard).

    imports is a list of import statements, body the remaining top-level code
    without the module docstring, main_guard the `if __name__ == "__main__":`
    block (or "").
    """
    source = source or ""
    lines = source.splitlines()
    try:
        tree = ast.parse(source)
    except (SyntaxError, ValueError):
        return _split_by_lines(lines)

    imports, guard = [], []
    dropped = set()
    for index, node in enumerate(tree.body):
        span = range(node.lineno - 1, node.end_lineno)
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            imports.append("\n".join(lines[i] for i in span))
        elif _is_main_guard(node):
            guard.append("\n".join(lines[i] for i in span))
        elif (index == 0 and isinstance(node, ast.Expr)
              and isinstance(node.value, ast.Constant) and isinstance(node.value.value, str)):
            pass
        else:
            continue
        dropped.update(span)

    body = "\n".join(line for i, line in enumerate(lines) if i not in dropped)
    return imports, body.strip("\n"), "\n\n".join(guard)


def _split_by_lines(lines):
    imports, body, guard = [], [], []
    in_guard = False
    for line in lines:
        if in_guard:
            if line.strip() and not line.startswith((" ", "\t")):
                in_guard = False
            else:
                guard.append(line)
                continue
        if _IMPORT_LINE.match(line):
            imports.append(line)
        elif _MAIN_GUARD_LINE.match(line):
            in_guard = True
            guard.append(line)
        else:
            body.append(line)
    return imports, "\n".join(body).strip("\n"), "\n".join(guard).rstrip()


def rename_symbol(source, old, new):
    """Rename every name token `old` to `new`, leaving attributes and strings alone."""
    if not source or old == new:
        return source
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(source).readline))
    except (tokenize.TokenError, IndentationError, SyntaxError):
        return re.sub(rf"(?<![\w.]){re.escape(old)}\b", new, source)

    hits = []
    previous = None
    for tok in tokens:
        if tok.type == tokenize.NAME and tok.string == old:
            if not (previous is not None and previous.type == tokenize.OP and previous.string == "."):
                hits.append(tok.start)
        if tok.type not in (tokenize.NL, tokenize.COMMENT):
            previous = tok

    lines = source.splitlines(keepends=True)
    for row, col in reversed(hits):
        line = lines[row - 1]
        lines[row - 1] = line[:col] + new + line[col + len(old):]
    return "".join(lines)
