#!/usr/bin/env python3

# Global export service instance
_export_service = None


def get_export_service():
    """Get or create the global ExportService instance"""
    global _export_service
    if _export_service is None:
        from ..services.export_service import ExportService

        _export_service = ExportService()

    return _export_service


def reset_export_service():
    """Drop the global service so the next request builds a fresh one"""
    global _export_service
    _export_service = None
