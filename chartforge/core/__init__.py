"""Core chart repository logic: index merge, stores, publish and build."""
