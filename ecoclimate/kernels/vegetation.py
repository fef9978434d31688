"""
Vegetation growth, mortality and succession.

Stress:
    drought  θ < θ_wp (Forest: θ < 0.1·θ_wp)
    toxic    τ > τ_veg (Forest: τ > 3, FungalMat: never)
Under stress, R and G decay exponentially at the stress mortality rates
(forest drought mortality × 0.05). Without stress and with θ above the
establishment moisture:
    Forest: R += r_R·R·(θ/θ_fc)·(1 - τ/τ_max)·dt - m_R·R·dt
    Grass:  G += r_G·(1 - G)·(θ/θ_fc)·dt - m_G·G·dt - [τ > 1]·0.01·G·(τ/3)·dt

Succession, in priority order:
    1. Barren with F > 0.2            → FungalMat, F ≥ 0.3, R = G = 0
    2. FungalMat with F > F_forest, θ > 0.05: R += F/t_mat·dt; once R > 0.2
       snap to R = 0.3, G = 0, F = 0.1
    3. Barren with τ < 1, θ > 0.05    → G = 0.1

The state is then always re-derived from the covers (see ``derive_state``).
Water cells are skipped.
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.states import BARREN, FOREST_STATE, FUNGAL_MAT, GRASS, WATER
from ecoclimate.kernels.utils import clamp


@ti.func
def derive_state(mat, forest, grass, p: ti.template()):
    """Cover-dominant vegetation state."""
    threshold = p.state_cover_threshold[None]
    state = BARREN
    if mat > p.fungal_presence_threshold[None] and mat > forest and mat > grass:
        state = FUNGAL_MAT
    elif forest > threshold and forest > grass:
        state = FOREST_STATE
    elif grass > threshold:
        state = GRASS
    return state


@ti.func
def vegetation_update(cells: ti.template(), p: ti.template(), i, j, dt):
    terrain = cells.terrain[i, j]
    if terrain != WATER:
        state = cells.veg_state[i, j]
        moisture = cells.moisture[i, j]
        tau = cells.toxicity[i, j]
        forest = cells.forest_cover[i, j]
        grass = cells.grass_cover[i, j]
        mat = cells.mat_cover[i, j]
        fc = ti.max(p.soil_field_capacity[terrain], 0.01)

        # Stress
        wilting = p.soil_wilting_point[terrain]
        if state == FOREST_STATE:
            wilting *= p.forest_drought_tolerance[None]
        drought = 0
        if moisture < wilting:
            drought = 1

        tolerance = p.veg_toxicity_threshold[None]
        if state == FOREST_STATE:
            tolerance = p.forest_toxicity_tolerance[None]
        toxic = 0
        if state != FUNGAL_MAT and tau > tolerance:
            toxic = 1

        if drought == 1:
            rate = p.veg_drought_death_rate_day[None]
            if state == FOREST_STATE:
                rate *= p.forest_drought_mortality_factor[None]
            forest -= forest * rate * dt
            grass -= grass * rate * dt
        if toxic == 1:
            rate = p.veg_toxicity_death_rate_day[None]
            forest -= forest * rate * dt
            grass -= grass * rate * dt

        # Growth
        establish_moisture = (
            p.succession_moisture_grass_pct[None] / 100.0 * p.max_volumetric_moisture[None]
        )
        if drought == 0 and toxic == 0 and moisture > establish_moisture:
            ratio = moisture / fc
            if state == FOREST_STATE and forest > 0:
                env = ratio * (1.0 - tau / p.toxicity_range_max[None])
                forest += p.forest_growth_rate_day[None] * forest * env * dt
                forest -= p.forest_mortality_day[None] * forest * dt
            elif state == GRASS:
                growth = p.veg_growth_rate_day[None] * (1.0 - grass) * ratio * dt
                mortality = p.grass_mortality_day[None] * grass * dt
                if tau > p.grass_toxic_mortality_threshold[None]:
                    mortality += (
                        p.grass_toxic_mortality_day[None]
                        * grass
                        * (tau / p.toxicity_range_max[None])
                        * dt
                    )
                grass = clamp(grass + growth - mortality, 0.0, 1.0)
            cells.days_since_establishment[i, j] += dt
        else:
            cells.days_since_establishment[i, j] = 0.0

        # Succession
        if state == BARREN and mat > p.barren_to_mat_cover[None]:
            state = FUNGAL_MAT
            mat = ti.max(mat, p.mat_snap_cover[None])
            forest = 0.0
            grass = 0.0
            cells.days_since_establishment[i, j] = 0.0

        if state == FUNGAL_MAT:
            if mat > p.mat_to_forest_threshold[None] and moisture > p.succession_moisture_min[None]:
                gain = mat / p.mat_to_forest_days[None] * dt
                forest += gain
                mat -= gain * p.mat_to_forest_mat_loss[None]
                if forest > p.forest_snap_trigger[None]:
                    state = FOREST_STATE
                    forest = p.forest_snap_cover[None]
                    grass = 0.0
                    mat = p.forest_snap_mat_cover[None]

        if (
            state == BARREN
            and tau < p.succession_grass_threshold_toxicity[None]
            and moisture > p.succession_moisture_min[None]
        ):
            state = GRASS
            grass = p.grass_establishment_cover[None]

        forest = clamp(forest, 0.0, 1.0)
        grass = clamp(grass, 0.0, 1.0)
        mat = clamp(mat, 0.0, 1.0)
        cells.forest_cover[i, j] = forest
        cells.grass_cover[i, j] = grass
        cells.mat_cover[i, j] = mat
        cells.veg_state[i, j] = derive_state(mat, forest, grass, p)


@ti.kernel
def vegetation_step(cells: ti.template(), p: ti.template(), dt: DTYPE):
    """Apply growth, mortality and succession to every cell."""
    for i, j in cells.veg_state:
        vegetation_update(cells, p, i, j, dt)


@ti.kernel
def refresh_states(cells: ti.template(), p: ti.template()):
    """Re-derive every cell's vegetation state from its covers."""
    for i, j in cells.veg_state:
        cells.veg_state[i, j] = derive_state(
            cells.mat_cover[i, j], cells.forest_cover[i, j], cells.grass_cover[i, j], p
        )
