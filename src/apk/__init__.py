"""APK assembly: manifest, configuration, staged pipeline and builder."""
