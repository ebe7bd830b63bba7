"""
Score de compatibilidade imóvel x busca do lead (0-100).

Pesos:
- Quartos: 15 (5 se faltar 1 quarto)
- Banheiros: 15 (5 se faltar até 0.5)
- Preço: 25 (10 se estiver até 10% fora da faixa)
- Área: 15 (5 se tiver pelo menos 90% da mínima)
- Tipo: 10
- Localização: 30 (cidade, CEP ou endereço contém o termo)

O score é a porcentagem dos pontos disponíveis: critérios que o lead não
informou não entram na conta.
"""

from typing import Iterable, Optional

from leadnurture.domain.entities import Property, LeadPropertySearch

MATCH_THRESHOLD = 60.0


def _location_matches(prop: Property, locations: Iterable[str]) -> bool:
    city = (prop.city or "").lower()
    zip_code = (prop.zip_code or "").lower()
    address = (prop.address or "").lower()
    for location in locations:
        term = (location or "").strip().lower()
        if term and (term in city or term in zip_code or term in address):
            return True
    return False


def calculate_match_score(prop: Property, search: LeadPropertySearch) -> float:
    earned = 0.0
    available = 0.0

    # Quartos
    if search.min_bedrooms:
        available += 15
        bedrooms = prop.bedrooms or 0
        if bedrooms >= search.min_bedrooms:
            earned += 15
        elif bedrooms >= search.min_bedrooms - 1:
            earned += 5

    # Banheiros
    if search.min_bathrooms:
        available += 15
        bathrooms = prop.bathrooms or 0
        if bathrooms >= search.min_bathrooms:
            earned += 15
        elif bathrooms >= search.min_bathrooms - 0.5:
            earned += 5

    # Preço
    if search.min_price or search.max_price:
        available += 25
        price = prop.price or 0
        if search.min_price and search.max_price:
            if search.min_price <= price <= search.max_price:
                earned += 25
            elif (search.min_price * 0.9 <= price < search.min_price) or (
                search.max_price < price <= search.max_price * 1.1
            ):
                earned += 10
        elif search.max_price and price <= search.max_price:
            earned += 25
        elif search.min_price and price >= search.min_price:
            earned += 25

    # Área
    if search.min_square_feet:
        available += 15
        square_feet = prop.square_feet or 0
        if square_feet >= search.min_square_feet:
            earned += 15
        elif square_feet >= search.min_square_feet * 0.9:
            earned += 5

    # Tipo
    if search.property_types:
        available += 10
        wanted = {t.strip().lower() for t in search.property_types if t}
        if (prop.property_type or "").strip().lower() in wanted:
            earned += 10

    # Localização
    if search.locations:
        available += 30
        if _location_matches(prop, search.locations):
            earned += 30

    if available == 0:
        return 0.0
    return round(earned / available * 100, 2)


def is_good_match(score: Optional[float]) -> bool:
    return score is not None and score > MATCH_THRESHOLD


def format_recommendation_message(lead_name: str, properties: list[Property]) -> str:
    """Monta o SMS com as recomendações de imóveis."""
    lines = [
        f"Hi {lead_name}, I found {len(properties)} properties that match what you're looking for:",
        "",
    ]
    for index, prop in enumerate(properties, 1):
        price = f"${prop.price:,}" if prop.price is not None else "price on request"
        bathrooms = prop.bathrooms
        if bathrooms is not None and float(bathrooms).is_integer():
            bathrooms = int(bathrooms)
        lines.append(
            f"{index}. {prop.address}, {prop.city}: {prop.bedrooms} bed, {bathrooms} bath, {price}"
        )
    lines.append("")
    lines.append(
        "Reply with the number of any property you'd like to learn more about, "
        "or \"show more\" to see additional options."
    )
    return "\n".join(lines)
