"""Service layer — node operations returning ServiceResult.

Services may import from domain and infrastructure layers.
They must never import from formats, bindings, commands, or output.
"""
