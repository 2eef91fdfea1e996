"""3GX Verify - Inspect and verify 3GX plugin containers."""
