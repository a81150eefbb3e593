#!/usr/bin/env python3
"""
Add a script entry to a JSON package manifest when it is missing.

Usage:
    python scripts/ensure_manifest_script.py [manifest] [name] [command]

Defaults add "build:dev": "vite build --mode development" to package.json.
"""

import json
import sys

DEFAULT_MANIFEST = 'package.json'
DEFAULT_NAME = 'build:dev'
DEFAULT_COMMAND = 'vite build --mode development'


def ensure_script(manifest_path, name, command):
    """
    Set scripts[name] = command in the manifest unless an entry already
    exists. The file is rewritten with two-space indentation only when it
    changed. Returns True when the entry was added.
    """
    with open(manifest_path, 'r', encoding='utf-8') as f:
        manifest = json.load(f)

    scripts = manifest.setdefault('scripts', {})
    if name in scripts:
        return False

    scripts[name] = command
    with open(manifest_path, 'w', encoding='utf-8') as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)
    return True


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    manifest_path = args[0] if len(args) > 0 else DEFAULT_MANIFEST
    name = args[1] if len(args) > 1 else DEFAULT_NAME
    command = args[2] if len(args) > 2 else DEFAULT_COMMAND

    try:
        added = ensure_script(manifest_path, name, command)
    except FileNotFoundError:
        print(f"[ERROR] {manifest_path} not found")
        return 1
    except json.JSONDecodeError as e:
        print(f"[ERROR] {manifest_path} is not valid JSON: {e}")
        return 1

    if added:
        print(f"[OK] Added script '{name}' to {manifest_path}")
    else:
        print(f"[OK] Script '{name}' already present in {manifest_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
