"""
Gatewarden test suite.

This package contains the tests for the Gatewarden library:
- Response and exception types
- Policy and ability registries
- Gate decision engine
- GateManager bootstrap
- Reference collaborators (container, config, events, auth, annotations)
"""
