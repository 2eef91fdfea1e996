"""3GX Compile - Build 3GX plugin containers."""
