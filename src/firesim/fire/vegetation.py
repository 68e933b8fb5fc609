"""Vegetation classifications and their prompt descriptors.

Three tables are consulted when describing vegetation in a prompt:
- VEGETATION_DESCRIPTORS: the common types offered to trainers
- SVTM_FORMATION_DESCRIPTORS: the 17 NSW State Vegetation Type Map formations
- NVIS_MVS_DESCRIPTORS: National Vegetation Information System subgroups
"""

from firesim.models.scenario import GeoContext

DEFAULT_VEGETATION_TYPE = "Dry Sclerophyll Forest"

VEGETATION_TYPES: tuple[str, ...] = (
    "Dry Sclerophyll Forest",
    "Wet Sclerophyll Forest",
    "Grassy Woodland",
    "Grassland",
    "Heath",
    "Rainforest",
    "Cumberland Plain Woodland",
    "Riverine Forest",
    "Swamp Sclerophyll Forest",
    "Coastal Sand Heath",
    "Alpine Complex",
    "Plantation Forest",
    "Cleared/Urban",
)

VEGETATION_DESCRIPTORS: dict[str, str] = {
    "Dry Sclerophyll Forest": "dry eucalyptus forest with sparse understorey and leaf litter",
    "Wet Sclerophyll Forest": "tall wet eucalyptus forest with dense fern understorey",
    "Grassland": "open grassland with cured dry grass",
    "Heath": "low dense coastal heath and scrubland",
    "Rainforest": "subtropical rainforest with dense canopy",
    "Grassy Woodland": "open woodland with scattered eucalypts over native grasses",
    "Cumberland Plain Woodland": (
        "dry woodland on shale with sparse canopy and grassy groundlayer"
    ),
    "Riverine Forest": "eucalypt forest along waterways with moist understorey",
    "Swamp Sclerophyll Forest": (
        "wet sclerophyll forest on poorly drained soils with paperbark and swamp mahogany"
    ),
    "Coastal Sand Heath": (
        "wind-shaped coastal heath on sandy ridges with banksia and tea-tree"
    ),
    "Alpine Complex": "alpine heath and grass mosaic with stunted shrubs and herbfields",
    "Plantation Forest": "structured plantation rows with dense fuel between tree lines",
    "Cleared/Urban": "cleared land or urban area with minimal vegetation and structures",
}

# Source: NSW DCCEEW State Vegetation Type Map
SVTM_FORMATION_DESCRIPTORS: dict[str, str] = {
    "Alpine complex": (
        "alpine heath and snow grass mosaic with stunted shrubs, herbfields, and exposed "
        "rocky outcrops above the treeline"
    ),
    "Arid shrublands (Acacia subformation)": (
        "arid mulga and acacia shrubland with spinifex hummock grass and sparse canopy "
        "on red-brown soil"
    ),
    "Arid shrublands (Chenopod subformation)": (
        "sparse saltbush and bluebush shrubland on flat clay plains with minimal ground fuel"
    ),
    "Cleared": (
        "cleared agricultural land, pasture, or urban area with minimal native vegetation "
        "and scattered structures"
    ),
    "Dry sclerophyll forests (Shrub/grass subformation)": (
        "dry eucalyptus forest with grassy understorey and scattered low shrubs over leaf "
        "litter on well-drained ridges"
    ),
    "Dry sclerophyll forests (Shrubby subformation)": (
        "dry eucalyptus forest with dense shrubby understorey of banksia, hakea, and "
        "pea-flowers over deep leaf litter and bark fuel"
    ),
    "Forested wetlands": (
        "paperbark and swamp mahogany forest on waterlogged soils with sedge and reed "
        "understorey"
    ),
    "Freshwater wetlands": (
        "open freshwater marsh with reeds, sedges, and rushes around shallow ephemeral "
        "water bodies"
    ),
    "Grasslands": (
        "open native grassland with tussock grasses and minimal tree canopy, often cured "
        "dry in summer"
    ),
    "Grassy woodlands": (
        "open eucalypt woodland with scattered mature trees over a continuous native "
        "grass understorey"
    ),
    "Heathlands": (
        "low dense coastal or montane heath with banksia, tea-tree, and grevillea over "
        "sandy or rocky substrate"
    ),
    "Rainforests": (
        "dense subtropical or temperate rainforest with closed canopy, buttress roots, "
        "vines, and epiphytes"
    ),
    # The published layer name carries a double space
    "Saline  wetlands": (
        "coastal saltmarsh and mangrove communities on tidal flats with salt-tolerant "
        "grasses and succulents"
    ),
    "Semi-arid woodlands (Grassy subformation)": (
        "open semi-arid eucalypt or cypress woodland with native grass understorey on "
        "flat to undulating terrain"
    ),
    "Semi-arid woodlands (Shrubby subformation)": (
        "semi-arid woodland with mixed shrub understorey of cassia, hopbush, and native pine"
    ),
    "Wet sclerophyll forests (Grassy subformation)": (
        "tall wet eucalyptus forest with grassy understorey and scattered ferns in "
        "sheltered gullies and south-facing slopes"
    ),
    "Wet sclerophyll forests (Shrubby subformation)": (
        "tall wet eucalyptus forest with dense shrubby understorey of tree ferns, "
        "sassafras, and soft-leaved shrubs in high-rainfall areas"
    ),
}

# Source: DCCEEW NVIS 6.0 Major Vegetation Subgroups
NVIS_MVS_DESCRIPTORS: dict[str, str] = {
    # Eucalypt forests
    "Eucalyptus tall open forests with a dense broad-leaved understorey (wet sclerophyll)": (
        "tall wet eucalyptus forest with dense fern and broad-leaved shrub understorey in "
        "high-rainfall gullies; high bark and canopy fuel loads"
    ),
    "Eucalyptus tall open forests with a dense shrubby understorey (wet sclerophyll)": (
        "tall wet eucalyptus forest with dense shrubby understorey of tea-tree and "
        "sassafras; extremely high fuel loads and crown fire potential"
    ),
    "Eucalyptus open forests with a shrubby understorey": (
        "dry eucalyptus open forest with banksia, hakea, and pea-flower shrub understorey "
        "over deep leaf litter; moderate-high fire intensity"
    ),
    "Eucalyptus open forests with a grassy understorey": (
        "dry eucalyptus open forest with native grass understorey over well-drained "
        "ridges; surface fire dominant with moderate intensity"
    ),
    "Eucalyptus low open forests with a shrubby understorey": (
        "low eucalyptus open forest with dense shrub understorey on sandstone or poor "
        "soils; moderate-high surface fuel loads"
    ),
    "Eucalyptus woodlands with a shrubby understorey": (
        "open eucalypt woodland with scattered shrubs over dry leaf litter; moderate fire "
        "intensity with intermittent crown involvement"
    ),
    "Eucalyptus woodlands with a grassy understorey": (
        "open eucalypt woodland with continuous native grass understorey; fast-running "
        "grass fires with moderate intensity"
    ),
    "Eucalyptus woodlands with a tussock grass understorey": (
        "eucalypt woodland over tussock grass; surface fire dominant with rapid spread in "
        "cured conditions"
    ),
    "Eucalyptus woodlands with a hummock grass understorey": (
        "eucalypt woodland over spinifex hummock grass in arid/semi-arid areas; ring-fire "
        "behaviour in spinifex"
    ),
    "Eucalyptus open woodlands with a shrubby understorey": (
        "sparse eucalypt open woodland with scattered shrubs on infertile soils; "
        "low-moderate fire intensity"
    ),
    "Eucalyptus open woodlands with a grassy understorey": (
        "sparse eucalypt open woodland over native grasses; fast grass fire spread with "
        "low-moderate intensity"
    ),
    "Eucalyptus open woodlands with a hummock grass understorey": (
        "sparse eucalypt over spinifex in arid zones; spotty fire behaviour dependent on "
        "hummock connectivity"
    ),
    # Tropical eucalypts
    "Tropical Eucalyptus forests and woodlands with a tall annual grassy understorey": (
        "tropical eucalypt woodland with tall annual sorghum grass; extreme fire spread "
        "rate when cured in dry season"
    ),
    "Callitris forests and woodlands": (
        "cypress pine forest with sparse grassy understorey; dense canopy fuel, high crown "
        "fire risk once ignited"
    ),
    "Casuarina and Allocasuarina forests and woodlands": (
        "she-oak woodland with needle-like litter over grassy or sparse ground cover; "
        "moderate surface fuel"
    ),
    # Rainforests
    "Cool temperate rainforests": (
        "cool temperate rainforest with myrtle beech and tree ferns; dense moist canopy, "
        "rarely burns except in extreme drought"
    ),
    "Warm temperate rainforests": (
        "warm temperate rainforest with coachwood and sassafras; moist closed canopy, low "
        "fire risk under normal conditions"
    ),
    "Tropical/subtropical rainforests - coastal/lowland": (
        "lowland tropical rainforest with buttressed trees and vines; very low fire risk, "
        "dense humid canopy"
    ),
    "Tropical/subtropical rainforests - upland": (
        "upland tropical cloud forest with epiphytes and mosses; extremely low fire risk"
    ),
    "Dry rainforests/vine thickets - monsoon": (
        "deciduous vine thicket in monsoon tropics; seasonally flammable after leaf-drop"
    ),
    # Acacia
    "Brigalow (Acacia harpophylla) forests and woodlands": (
        "brigalow acacia scrub with dark-barked trees and grassy patches; high fine fuel "
        "accumulation"
    ),
    "Mulga (Acacia aneura) woodlands and shrublands": (
        "mulga woodland with spinifex and annual grasses in arid zones; low fire frequency "
        "but intense when fuels align"
    ),
    "Other Acacia forests and woodlands": (
        "acacia woodland or shrubland with mixed native understorey; moderate fine fuel loads"
    ),
    "Acacia shrublands and low open forests": (
        "arid acacia scrub with sparse ground cover on red soils; low-moderate fire intensity"
    ),
    "Melaleuca forests and woodlands": (
        "paperbark forest on waterlogged soils with sedge and reed understorey; paperbark "
        "is highly flammable when dry"
    ),
    "Heathlands": (
        "low dense heath with banksia, tea-tree, and grevillea over sandy or rocky "
        "substrate; very high surface fuel loads and fire intensity"
    ),
    # Grasslands
    "Tussock grasslands": (
        "open native tussock grassland with no tree canopy; rapid fire spread when cured, "
        "moderate intensity"
    ),
    "Hummock grasslands": (
        "spinifex hummock grassland in arid/semi-arid regions; ring-fire behaviour with "
        "spotting potential"
    ),
    "Mitchell grass (Astrebla) tussock grasslands": (
        "open Mitchell grass plains in semi-arid Australia; moderate spread rate when cured"
    ),
    "Tropical and subtropical grasslands": (
        "tropical grassland with tall annual grasses in northern Australia; extreme spread "
        "rates in dry season"
    ),
    "Alpine heathlands and herbfields": (
        "alpine and subalpine herbfield and shrub mosaic above treeline; low fuel loads, "
        "burns in extreme fire weather"
    ),
    "Chenopod shrublands, samphire shrublands and forblands": (
        "saltbush and bluebush shrubland on flat clay plains; minimal fine fuel, very low "
        "fire risk"
    ),
    # Mangroves and wetlands
    "Mangrove forests and woodlands": (
        "tidal mangrove forest with pneumatophores and mud substrate; not fire-prone"
    ),
    "Saline and freshwater wetlands": (
        "coastal saltmarsh, freshwater sedge swamp, or reed bed; low fire risk unless "
        "dried out"
    ),
    # Mallee
    "Eucalyptus mallee woodlands and shrublands": (
        "multi-stemmed mallee eucalypt with dense shrub understorey over sandy soil; very "
        "high fuel loads and crown fire potential"
    ),
    "Eucalyptus mallee open woodlands and sparse mallee shrublands": (
        "open mallee with spinifex or chenopod understorey; moderate fire risk dependent "
        "on understorey connectivity"
    ),
    # Cleared
    "Cleared": (
        "cleared agricultural land, pasture, or urban area with minimal native vegetation "
        "and scattered structures"
    ),
    "Naturally bare": "naturally bare rock, sand, or water body with no vegetation fuel",
    "Unclassified": "vegetation type not classified or insufficient survey data",
}


def get_nvis_descriptor(mvs_name: str) -> str:
    """Return the prompt descriptor for an NVIS subgroup name.

    Tries a direct match, then matches the first word of each known subgroup
    against the name.
    """
    if mvs_name in NVIS_MVS_DESCRIPTORS:
        return NVIS_MVS_DESCRIPTORS[mvs_name]

    lower = mvs_name.lower()
    for key, descriptor in NVIS_MVS_DESCRIPTORS.items():
        if key.lower().split(" ")[0] in lower:
            return descriptor

    return f"{mvs_name} (vegetation type with uncharacterised fire behaviour)"


def get_effective_vegetation_type(geo_context: GeoContext | None) -> str:
    """Return the manual override, the detected type, or the default."""
    if geo_context is None:
        return DEFAULT_VEGETATION_TYPE
    return geo_context.effective_vegetation_type or DEFAULT_VEGETATION_TYPE


def describe_vegetation(vegetation_type: str) -> str:
    """Return the best prompt descriptor for a vegetation type.

    Unknown types are described by their lower-cased name.
    """
    for table in (VEGETATION_DESCRIPTORS, SVTM_FORMATION_DESCRIPTORS, NVIS_MVS_DESCRIPTORS):
        if vegetation_type in table:
            return table[vegetation_type]
    return vegetation_type.lower()
