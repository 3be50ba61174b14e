"""Test plan (.xctestplan) editing."""
