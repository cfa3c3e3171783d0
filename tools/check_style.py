#!/usr/bin/env python3
"""Check for banned Python constructions in pi3g-netconf source.

Banned constructions:

    Construction          Reason                            Use instead
    --------------------  --------------------------------  --------------------------
    os.system(...)        runs a shell string as root       subprocess.run with argv
    os.popen(...)         runs a shell string as root       subprocess.run with argv
    shell=True            runs a shell string as root       pass an argv list
"""

import ast
import os
import sys

BANNED_OS_CALLS = frozenset({"system", "popen"})


def find_python_files(directory):
    """Find all .py files recursively, excluding caches."""
    result = []
    for root, dirs, files in os.walk(directory):
        if "__pycache__" in dirs:
            dirs.remove("__pycache__")
        for f in files:
            if f.endswith(".py"):
                result.append(os.path.join(root, f))
    result.sort()
    return result


def check_file(filepath):
    with open(filepath) as f:
        source = f.read()

    tree = ast.parse(source, filepath)
    errors = []

    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        lineno = node.lineno

        # os.system(...), os.popen(...)
        func = node.func
        if (
            isinstance(func, ast.Attribute)
            and isinstance(func.value, ast.Name)
            and func.value.id == "os"
            and func.attr in BANNED_OS_CALLS
        ):
            errors.append((lineno, f"os.{func.attr}: banned, use subprocess.run with argv"))

        # subprocess.run(..., shell=True)
        for kw in node.keywords:
            if (
                kw.arg == "shell"
                and isinstance(kw.value, ast.Constant)
                and kw.value.value is True
            ):
                errors.append((lineno, "shell=True: banned, pass an argv list"))

    return errors


def main():
    src_dir = "src"
    if len(sys.argv) > 1:
        src_dir = sys.argv[1]

    if not os.path.isdir(src_dir):
        print(f"Directory not found: {src_dir}")
        sys.exit(1)

    all_errors = []
    for filepath in find_python_files(src_dir):
        try:
            errors = check_file(filepath)
            for lineno, description in errors:
                all_errors.append((filepath, lineno, description))
        except SyntaxError as e:
            print(f"Syntax error in {filepath}: {e}")
            sys.exit(1)

    for filepath, lineno, description in sorted(all_errors):
        print(f"{filepath}:{lineno}: {description}")
    sys.exit(1 if all_errors else 0)


if __name__ == "__main__":
    main()
