#!/usr/bin/env python3
"""
Cambiar entre las branches de base de datos de desarrollo y producción.

Uso: python scripts/switch_db_branch.py [dev|prod]

Las URLs de cada branch se leen del entorno (o del .env de la raíz):
DEV_DATABASE_URL, DEV_DIRECT_URL, PROD_DATABASE_URL, PROD_DIRECT_URL.
"""
import os
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import dotenv_values, load_dotenv, set_key

ROOT_DIR = Path(__file__).resolve().parent.parent

BRANCHES = {
    "dev": {
        "name": "development",
        "description": "Branch de desarrollo",
        "env_file": ".env.local",
        "prefix": "DEV",
        "additional": {"APP_ENV": "development", "DEBUG": "true"},
    },
    "prod": {
        "name": "production",
        "description": "Branch de producción",
        "env_file": ".env.production",
        "prefix": "PROD",
        "additional": {"APP_ENV": "production", "DEBUG": "false"},
    },
}


def branch_values(branch: str, environ: Mapping[str, str]) -> Dict[str, str]:
    """Variables a escribir para la branch (DATABASE_URL, DIRECT_URL y adicionales)"""
    config = BRANCHES[branch]
    database_url = environ.get(f"{config['prefix']}_DATABASE_URL")
    if not database_url:
        raise ValueError(f"Falta {config['prefix']}_DATABASE_URL en el entorno")

    values = {
        "DATABASE_URL": database_url,
        "DIRECT_URL": environ.get(f"{config['prefix']}_DIRECT_URL") or database_url,
    }
    values.update(config["additional"])
    return values


def write_env_file(env_path: Path, values: Dict[str, str], branch: str) -> List[str]:
    """
    Crear o actualizar el archivo .env de la branch.

    Las líneas existentes que no se tocan se preservan; las claves que
    faltan se agregan al final.
    """
    changes = []
    if not env_path.exists():
        env_path.write_text(
            f"# Configuración automática para {BRANCHES[branch]['name']}\n"
            f"# Generado por: python scripts/switch_db_branch.py {branch}\n\n",
            encoding="utf-8"
        )
        changes.append(f"📝 Archivo {env_path.name} creado")

    current = dotenv_values(env_path)
    for key, value in values.items():
        action = "actualizada" if key in current else "agregada"
        set_key(str(env_path), key, value, quote_mode="always")
        changes.append(f"✅ {key} {action}")
    return changes


def describe_host(database_url: str) -> str:
    if "@" not in database_url:
        return "URL configurada"
    return database_url.split("@", 1)[1].split("/")[0]


def switch_branch(branch: str, root: Path = ROOT_DIR, environ: Optional[Mapping[str, str]] = None) -> Path:
    if branch not in BRANCHES:
        raise ValueError(f"Branch inválida: {branch}. Usar dev o prod")

    environ = os.environ if environ is None else environ
    config = BRANCHES[branch]
    values = branch_values(branch, environ)
    env_path = Path(root) / config["env_file"]

    print(f"🔄 Cambiando a: {config['description']}")
    for change in write_env_file(env_path, values, branch):
        print(change)

    print("\n📊 Estado actual:")
    print(f"   🌍 Entorno: {config['name']}")
    print(f"   📁 Archivo: {env_path.name}")
    print(f"   🔗 Endpoint: {describe_host(values['DATABASE_URL'])}")
    return env_path


def main(argv: List[str]) -> int:
    if len(argv) != 2 or argv[1] not in BRANCHES:
        print("❌ Uso: python scripts/switch_db_branch.py [dev|prod]")
        print("   dev  - Branch de desarrollo")
        print("   prod - Branch de producción")
        return 1

    load_dotenv(ROOT_DIR / ".env")
    try:
        switch_branch(argv[1])
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    print("\n⚠️  Recordatorio: verificar siempre la branch antes de modificar datos")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
