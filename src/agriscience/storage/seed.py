"""Catalog seed data — loaded on first start of an empty store.

IBGE codes are the SIDRA product codes (classification c48) used by the
productivity lookup.
"""

from agriscience.schemas.catalog import CropCreate, ProtocolCreate

CROPS = [
    CropCreate(name="Soja", scientific_name="Glycine max", category="Grãos", ibge_code="2713", emoji="🌱"),
    CropCreate(name="Milho", scientific_name="Zea mays", category="Grãos", ibge_code="2707", emoji="🌽"),
    CropCreate(name="Café", scientific_name="Coffea arabica", category="Permanente", ibge_code="2701", emoji="☕"),
    CropCreate(name="Cana-de-açúcar", scientific_name="Saccharum officinarum", category="Industrial", ibge_code="2704", emoji="🎋"),
    CropCreate(name="Trigo", scientific_name="Triticum aestivum", category="Grãos", ibge_code="2714", emoji="🌾"),
    CropCreate(name="Amendoim", scientific_name="Arachis hypogaea", category="Oleaginosa", ibge_code="2699", emoji="🥜"),
    CropCreate(name="Algodão", scientific_name="Gossypium spp.", category="Fibra", ibge_code="2700", emoji="☁️"),
    CropCreate(name="Arroz", scientific_name="Oryza sativa", category="Grãos", ibge_code="2703", emoji="🍚"),
]

PROTOCOLS = [
    ProtocolCreate(name="Convencional", description="Manejo tradicional com agroquímicos", type="conventional"),
    ProtocolCreate(name="Orgânico", description="Sem uso de produtos sintéticos", type="organic"),
    ProtocolCreate(name="Biológico", description="Controle biológico integrado", type="biological"),
    ProtocolCreate(name="Convencional + Biológico", description="Manejo integrado híbrido", type="conventional_biological"),
]
