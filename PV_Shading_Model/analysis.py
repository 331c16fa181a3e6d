import numpy as np
from PV_Shading_Model.energy import *
from matplotlib import pyplot as plt
import matplotlib.ticker as mticker

def _in_notebook() -> bool:
    try:
        from IPython import get_ipython
        return get_ipython() is not None and hasattr(get_ipython(), "kernel")
    except ImportError:
        return False

IN_NOTEBOOK = _in_notebook()

BASE_UNITS = {
    "Pmax": ("W",  "W"),
    "Vmp":  ("V",  "V"),
    "Imp":  ("A",  "A"),
    "Voc":  ("V",  "V"),
    "Isc":  ("A",  "A"),
    "FF":   ("%",  r"\%"),
    "Area": ("m2", r"m$^2$"),
    "Eff":  ("%",  r"\%"),
}

DISPLAY_DECIMALS = {
    "Pmax": (3,2),
    "Vmp":  (4,2),
    "Imp":  (3,2),
    "Voc":  (4,2),
    "Isc":  (3,2),
    "FF":   (3,3),
    "Area": (5,5),
    "Eff":  (3,3),
}

def get_IV_parameter_words(self, display_or_latex=0, cell_or_string=0, cap_decimals=True, area=None):
    parameters = {}
    parameters["Pmax"] = self.get_Pmax()
    parameters["Vmp"] = self.Vmp
    parameters["Imp"] = self.Imp
    parameters["Voc"] = self.Voc
    parameters["Isc"] = self.Isc
    parameters["FF"] = self.get_FF()*100
    if area is not None and area > 0:
        parameters["Area"] = area
        parameters["Eff"] = parameters["Pmax"]/(area*STC_IRRADIANCE)*100
    words = {}
    for key, value in parameters.items():
        decimals = DISPLAY_DECIMALS[key][cell_or_string] if cap_decimals else 6
        words[key] = f"{key} = {value:.{decimals}f} {BASE_UNITS[key][display_or_latex]}"
    return words, parameters

def _set_window_title(title):
    manager = plt.gcf().canvas.manager
    if manager is not None:
        manager.set_window_title(title)

def plot(self, show_IV_parameters=True, title="I-V Curve", area=None, cell_or_string=0):
    fig, ax1 = plt.subplots()
    ax1.plot(self.IV_V, self.IV_I)
    Voc = max(self.Voc, float(np.max(self.IV_V)) if self.n_samples > 0 else 0.0)
    Isc = max(self.Isc, float(np.max(self.IV_I)) if self.n_samples > 0 else 0.0)
    if Voc > 0:
        ax1.set_xlim((0, Voc*1.1))
    if Isc > 0:
        ax1.set_ylim((0, Isc*1.1))
    ax1.set_xlabel("Voltage (V)")
    ax1.set_ylabel("Current (A)")
    ax2 = ax1.twinx()

    P = self.IV_V*self.IV_I
    # Right Y-axis (shares same X)
    ax2.plot(self.IV_V, P, color="orange")
    if P.size > 0 and np.max(P) > 0:
        ax2.set_ylim((0, np.max(P)*1.1))
    ax2.yaxis.set_major_formatter(mticker.FuncFormatter(lambda x, pos: f"{x:.2g}"))
    ax2.set_ylabel("Power (W)")

    if show_IV_parameters and Voc > 0 and Isc > 0:
        params = ["Isc","Voc","FF","Pmax"]
        if area is not None:
            params += ["Eff","Area"]
        words, _ = get_IV_parameter_words(self, display_or_latex=0, cell_or_string=cell_or_string, area=area)
        y_space = 0.07
        ax1.plot(self.Voc, 0, marker='o', color="blue")
        ax1.plot(0, self.Isc, marker='o', color="blue")
        ax1.plot(self.Vmp, self.Imp, marker='o', color="blue")
        ax2.plot(self.Vmp, self.Imp*self.Vmp, marker='o', color="orange")
        for i, param in enumerate(params):
            ax1.text(Voc*0.05, Isc*(0.8-i*y_space), words[param])
    plt.tight_layout()
    _set_window_title(title)
    return fig
IVTrace.plot = plot

def plot_energy_by_hour(self, title="Energy by Hour"):
    fig, ax = plt.subplots()
    hours = np.arange(self.energy_by_hour.size)
    ax.bar(hours, self.energy_by_hour, color="orange")
    ax.set_xlabel("Hour of day")
    ax.set_ylabel("Energy (Wh)")
    ax.set_xlim((-0.5, self.energy_by_hour.size - 0.5))
    ax.text(0.02, 0.95, str(self), transform=ax.transAxes, va="top")
    plt.tight_layout()
    _set_window_title(title)
    return fig
DaySimResult.plot = plot_energy_by_hour

def show(self=None):
    # In notebooks, figures are auto-shown; don't block
    if IN_NOTEBOOK:
        plt.show(block=False)
    else:
        plt.show()
IVTrace.show = show
DaySimResult.show = show
