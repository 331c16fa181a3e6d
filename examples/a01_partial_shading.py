# %% [markdown]
# # Partial Shading Demo
# This notebook shows how a shadow over a few cells changes the output of a series string,
# with and without bypass diodes.

#%%
from PV_Shading_Model.string_model import *
from PV_Shading_Model.analysis import *

# %% [markdown]
# ## A single cell

#%%
# Presets come from parameters/cell_presets.json
preset = get_cell_preset("Maxeon Gen 3 (ME3)")
cell_trace = preset.make_trace(irradiance_ratio=1.0)
print(cell_trace)
cell_trace.plot(title="Cell I-V Curve", area=preset.area)
cell_trace.show()

# %% [markdown]
# ## A string of 20 cells with 3 of them in the shade

#%%
irradiance_ratios = np.ones(20)
irradiance_ratios[5:8] = [0.1, 0.0, 0.3]
cell_traces = [preset.make_trace(ratio) for ratio in irradiance_ratios]

#%%
# Without bypass diodes the weakest cell sets the string current
no_bypass = calc_string_IV(cell_traces, preset.bypass_v_drop)
print("No bypass diodes: ", no_bypass)

#%%
# With a bypass diode on every cell the shaded cells are skipped at the cost of one diode drop each
per_cell = calc_string_IV(cell_traces, preset.bypass_v_drop, has_bypass=np.ones(20, dtype=bool))
print("Bypass on every cell: ", per_cell)
per_cell.iv_trace.plot(title="String I-V Curve, bypass on every cell", cell_or_string=1)
per_cell.iv_trace.show()

# %% [markdown]
# ## The same string with one diode per 10 cells, plus finer diodes over the first 10

#%%
segments = [SegmentBypass(0, 9, preset.bypass_v_drop),
            SegmentBypass(10, 19, preset.bypass_v_drop)]
segments += [SegmentBypass(i, i+1, preset.bypass_v_drop) for i in range(0, 10, 2)]
segmented, segment_active = calc_string_IV_with_segments(cell_traces, segments)
print("Segmented: ", segmented)
print("Active segments: ", [segments[k] for k in np.flatnonzero(segment_active)])

#%%
# Where each cell sits at the string operating point
for i, state in enumerate(get_segment_cell_operating_states(cell_traces, segments, segmented)):
    print(f"cell {i:2d}: {'bypassed' if state.is_bypassed else 'active  '} V = {state.voltage:+.3f} V, P = {state.power:+.3f} W")

#%%
# Quick estimate without building any I-V curves
cell_currents = preset.isc*irradiance_ratios
power, bypassed = calc_string_power_simple(cell_currents, np.full(20, preset.vmp), preset.bypass_v_drop,
                                           has_bypass=np.ones(20, dtype=bool))
print(f"Quick estimate: {power:.2f} W with {np.count_nonzero(bypassed)} cells bypassed")
