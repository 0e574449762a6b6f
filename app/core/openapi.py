"""
OpenAPI schema customizations for drf-spectacular.

Views set their tag with ``@extend_schema(tags=[...])``; this hook adds the
tag descriptions shown in ReDoc.

Tag naming follows the pattern: [App Name] - [Group Name]
"""

TAG_DESCRIPTIONS = {
    "Deposits - Release": (
        "Manual release of a held security deposit by the booking's renter or owner."
    ),
    "Deposits - Sweep": (
        "On-demand reconciliation sweep over held deposits (staff only)."
    ),
    "Claims": "Renter responses to damage claims filed by equipment owners.",
}


def describe_tags(result, generator, request, public):
    """
    Postprocessing hook adding descriptions for tags used in the schema.

    Only tags that appear on at least one operation are listed.
    """
    used = set()
    for methods in result.get("paths", {}).values():
        for operation in methods.values():
            if isinstance(operation, dict):
                used.update(operation.get("tags", []))

    result["tags"] = [
        {"name": name, "description": description}
        for name, description in TAG_DESCRIPTIONS.items()
        if name in used
    ]
    return result
