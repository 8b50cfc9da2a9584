"""Domain models, ports and pure logic with no framework dependencies."""
