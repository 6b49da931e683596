"""
Read-only listings: metadata tables, project comparison and instance groups.
"""

import logging
from typing import Dict, List

from clients import ComputeRestClient
from errors import ValidationError
from models import CompareMeta, MetadataItem

logger = logging.getLogger(__name__)


def print_keys(items: List[MetadataItem], project_id: str) -> None:
    logger.info(f"{'key':<45.45} | {project_id:<30.30}")
    logger.info("=" * (45 + 30 + 1 * 3))
    for item in items:
        logger.info(f"{item.key:<45.45} | {item.value or '':<30.30}")


def print_comparison(
    keys: Dict[str, CompareMeta], project_a: str, project_b: str
) -> None:
    logger.info(f"{'key':<45.45} | {'equal':<5.5} | {project_a:<25.25} | {project_b:<25.25}")
    logger.info("=" * (45 + 5 + 2 * 25 + 3 * 3))
    for key in sorted(keys):
        meta = keys[key]
        logger.info(
            f"{key:<45.45} | {str(meta.equal):>5} | {meta.a:<25.25} | {meta.b:<25.25}"
        )


def list_instance_groups(
    api: ComputeRestClient, project_id: str
) -> Dict[str, Dict[str, List[str]]]:
    """
    Collect every managed instance group of a project with its instances.

    Returns:
        zone -> group name -> instance references
    """
    if not project_id:
        raise ValidationError(["GOOGLE_PROJECT_ID cannot be blank"])

    inventory: Dict[str, Dict[str, List[str]]] = {}
    for zone, groups in api.aggregated_list_instance_groups(project_id).items():
        inventory[zone] = {
            group: api.list_managed_instances(project_id, zone, group)
            for group in groups
        }
    return inventory


def print_instance_groups(inventory: Dict[str, Dict[str, List[str]]]) -> None:
    for zone in sorted(inventory):
        logger.info(zone)
        for group, instances in inventory[zone].items():
            logger.info(f"    {group}")
            for instance in instances:
                logger.info(f"        {instance}")
