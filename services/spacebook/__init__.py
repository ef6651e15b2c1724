# ============================================================
# spacebook — Réservation de créneaux pour espaces partagés
# (terrains de sport, espaces de travail)
# ============================================================
__version__ = "0.1.0"
