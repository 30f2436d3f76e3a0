"""
Clinic-Scribe: clinical session capture pipeline

Turns a live microphone stream into a persisted, structured clinical record:
periodic retranscription while the clinician speaks, an orderly stop with a
final pass, structured extraction and a single atomic appointment update.
"""

__version__ = "0.1.0"
__author__ = "Clinic-Scribe Team"
__description__ = "Clinical session capture pipeline"
