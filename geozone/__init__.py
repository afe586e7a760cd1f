"""
GeoZone — geohash zone explorer.

Provides:
- Geohash codec and precision tables (geo/)
- Active-cell resolution and user settings (state/)
- Overlay reconciliation against a map handle (render/)
- SQLite-backed preference storage (storage/)
- Address lookup with fallback tiers (ingest/)
- PyQt5 map widget and main window (gui/)

Entry point: python -m geozone.app
"""
