#!/usr/bin/env python3
"""
Demo script for Block Editor Core functionality.

This script demonstrates the key features of the block workspace:
1. Extracting Dart code from a model reply
2. Rebuilding the workspace from that code
3. Debounced change notification
4. XML export and reload
"""

import logging

from block_editor_core import (
    Workspace, WorkspaceConfig, VirtualClock, extract_dart_code
)
from block_editor_core.block_registry import BODY, VALUE


REPLY = '''Here is a simple model class:

```dart
class Person {
  String name = "Alice";
  int age = 30;
  List tags = ["admin"];

  void greet() {
    print('Hello, $name');
  }

  bool isAdult() {
    return age >= 18;
  }
}
```
'''


def demo_code_to_blocks(workspace):
    """Demonstrate rebuilding the workspace from a model reply."""
    print("=== Demo 1: Reply to Blocks ===")

    code = extract_dart_code(REPLY)
    print("Extracted code:")
    print("-" * 40)
    print(code)
    print("-" * 40)

    workspace.load_code(code)

    for class_block in workspace.model.top_blocks():
        print(f"Class block {class_block.fields['CLASS_NAME']} at {class_block.position}")
        for member in workspace.model.statement_chain((class_block.id, BODY)):
            literal = workspace.model.child_at((member.id, VALUE)) if member.get_socket(VALUE) else None
            suffix = f" = {literal.block_type}" if literal else ""
            print(f"  {member.block_type}: {member.fields}{suffix}")

    errors = workspace.validate_model()
    print(f"Validation errors: {len(errors)}")
    print()


def demo_debounced_notification(workspace, clock, received):
    """Demonstrate that a rebuild settles into one notification."""
    print("=== Demo 2: Debounced Notification ===")

    print(f"Notifications before the quiet period: {len(received)}")
    clock.advance(workspace.config.debounce_ms)
    print(f"Notifications after {workspace.config.debounce_ms}ms: {len(received)}")
    print()


def demo_xml_round_trip(workspace):
    """Demonstrate exporting and reloading the workspace."""
    print("=== Demo 3: XML Export and Reload ===")

    filename, payload = workspace.export_document()
    print(f"Export file: {filename} ({len(payload)} bytes)")

    restored = Workspace(scheduler=VirtualClock())
    restored.load_xml(payload.decode('utf-8'))
    same = restored.export_xml() == workspace.export_xml()
    print(f"Reloaded {len(restored.model.nodes)} blocks, identical document: {same}")
    restored.dispose()
    print()


def main():
    """Run all demos."""
    logging.basicConfig(level=logging.INFO)
    print("Block Editor Core Demo")
    print("=" * 50)
    print()

    clock = VirtualClock()
    received = []
    workspace = Workspace(WorkspaceConfig(), on_blocks_change=received.append, scheduler=clock)

    try:
        demo_code_to_blocks(workspace)
        demo_debounced_notification(workspace, clock, received)
        demo_xml_round_trip(workspace)
        print("All demos completed successfully!")
    finally:
        workspace.dispose()


if __name__ == "__main__":
    main()
