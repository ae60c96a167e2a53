"""Android SDK/NDK discovery and external tool execution."""
