"""Protocol bindings — per-transport exposure of the node operations.

Every binding routes through the same FormatAdapter, NodeService and
ConversionRegistry, so semantics are identical across transports.
"""
