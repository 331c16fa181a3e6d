# %% [markdown]
# # Day Simulation Demo
# This notebook integrates the energy of a small vehicle roof over a summer day, with the
# vehicle pointing in every direction.

#%%
from PV_Shading_Model.energy import *
from PV_Shading_Model.analysis import *

# %% [markdown]
# ## A roof of 24 cells: a flat panel plus a panel tilted 30 degrees towards the front

#%%
preset = get_cell_preset("Maxeon Gen 5")
tilt = np.radians(30.0)
flat_normals = np.tile([0.0, 1.0, 0.0], (12, 1))
tilted_normals = np.tile([0.0, np.cos(tilt), -np.sin(tilt)], (12, 1))
cell_normals = np.vstack([flat_normals, tilted_normals])

#%%
# Two strings, bypass diodes on every cell of the flat one and one diode per 6 cells on the tilted one
strings = [CellString(range(12), has_bypass=np.ones(12, dtype=bool), name="flat"),
           CellString(range(12, 24), segments=[SegmentBypass(0, 5), SegmentBypass(6, 11)], name="tilted")]
for string in strings:
    print(string)

#%%
# A roof rack shades the front 3 cells of the tilted panel whenever the sun is low
def is_occluded(cell_index, sun_direction):
    return 12 <= cell_index < 15 and sun_direction[1] < 0.5

# %% [markdown]
# ## Snapshot at noon

#%%
settings = SimSettings(month=6, day=21, hour=12.0)
integrator = EnergyIntegrator(strings, cell_normals, preset, settings=settings, is_occluded=is_occluded)
print(integrator.simulate_static())

# %% [markdown]
# ## Whole day

#%%
result = integrator.run()
print(result)
print("Energy per string (Wh): ", np.round(result.string_energy_wh, 2))
print("Cells shaded over the day: ", np.flatnonzero(result.cell_shaded))
result.plot(title="Energy by Hour")
result.show()
