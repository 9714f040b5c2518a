"""
Core Module for Slidesmith

Contains the response-recovery and deck-building steps of the generation
pipeline. The pipeline itself lives in src.core.deck_generator.
"""

from .fragment_extractor import extract_structured_fragment
from .slide_validator import SlideSchemaValidator
from .image_packer import pack_image_slides
from .deck_assembler import AssemblyInputs, DeckAssembler

__all__ = [
    # Response recovery
    'extract_structured_fragment',
    'SlideSchemaValidator',

    # Deck building
    'pack_image_slides',
    'AssemblyInputs',
    'DeckAssembler',
]
