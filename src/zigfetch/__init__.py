"""Download and unpack the latest Zig compiler build."""
