"""
Interpolação de templates
==========================

Substitui variáveis {{nome}} nos prompts. Variáveis desconhecidas ficam
como estão (o corretor pode escrever {{algo}} que não suportamos).

Exemplo:
    Template: "You are texting for {{agent_name}} from {{company_name}}."
    Resultado: "You are texting for Jane Doe from Sunset Realty."
"""
import re
from datetime import datetime, timedelta
from typing import Mapping, Optional

# Regex para encontrar variáveis {{nome}}
VARIABLE_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def date_context(now: datetime) -> dict[str, str]:
    """Variáveis de data usadas nos prompts."""
    tomorrow = now + timedelta(days=1)
    return {
        "current_date": f"{now.strftime('%B')} {now.day}, {now.year}",
        "current_day": now.strftime("%A"),
        "tomorrow": tomorrow.strftime("%m/%d/%Y"),
    }


def interpolate(template: Optional[str], context: Mapping[str, object]) -> str:
    if not template:
        return ""

    def replace(match: re.Match) -> str:
        name = match.group(1)
        value = context.get(name)
        if value is None:
            return match.group(0)
        return str(value)

    return VARIABLE_PATTERN.sub(replace, template)


def find_variables(template: Optional[str]) -> list[str]:
    """Lista as variáveis usadas no template (sem repetição, na ordem)."""
    seen: list[str] = []
    for name in VARIABLE_PATTERN.findall(template or ""):
        if name not in seen:
            seen.append(name)
    return seen
