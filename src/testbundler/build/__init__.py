"""Build execution and test bundle discovery."""
