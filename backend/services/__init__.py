# Services are imported lazily so that importing the package does not pull in
# the google-genai SDK. Import specific services where needed:
# from services.orchestrator import BodyShapeOrchestrator, create_orchestrator
# from services.ai_client import GenAIImageClient, create_ai_client
# from services.location_resolver import LocationResolver

__all__ = []
