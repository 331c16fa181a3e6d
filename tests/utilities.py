import os
from datetime import datetime
import re
import pickle
import json
import numpy as np

DIRECTORY = os.path.dirname(os.path.abspath(__file__))

def get_config():
    with open(os.path.join(DIRECTORY, "config.json"), "r") as f:
        return json.load(f)

def get_mode():
    return get_config().get("mode")

def get_fields(result, prefix=None):
    # values of the configured attributes (methods are called), each with its tolerances
    test_attributes = get_config().get("test_attributes", {})
    fields = {}
    for key in ["common", prefix]:
        if key is None or key not in test_attributes:
            continue
        for attribute in test_attributes[key]:
            attribute_name = attribute["name"]
            if not hasattr(result, attribute_name):
                continue
            attr = getattr(result, attribute_name)
            value = attr() if callable(attr) else attr
            if isinstance(value, np.ndarray):
                value = value.copy()
            elif isinstance(value, (np.floating, np.integer, np.bool_)):
                value = value.item()
            fields[attribute_name] = {"atol": attribute.get("atol", 1e-5),
                                      "rtol": attribute.get("rtol", 1e-5),
                                      "value": value}
    return fields

def make_timestamp():
    return datetime.now().strftime("%Y-%m-%d_%H%M%S")

def make_file_path_with_timestamp(prefix, extension):
    return os.path.join(DIRECTORY, prefix + "_" + make_timestamp() + extension)

def find_latest_pickle(prefix):
    # files look like prefix_YYYY-MM-DD_HHMMSS.pkl
    pattern = re.compile(rf"{re.escape(prefix)}_(\d{{4}}-\d{{2}}-\d{{2}}_\d{{6}})\.pkl")
    latest_file = None
    latest_time = None
    for filename in os.listdir(DIRECTORY):
        match = pattern.fullmatch(filename)
        if match:
            try:
                file_time = datetime.strptime(match.group(1), "%Y-%m-%d_%H%M%S")
            except ValueError:
                continue
            if latest_time is None or file_time > latest_time:
                latest_time = file_time
                latest_file = filename
    if latest_file is None:
        return None
    return os.path.join(DIRECTORY, latest_file)

def compare_nested_dicts(dict1, dict2, path="", pytest_mode=False):
    all_pass = True
    for key in set(dict1.keys()).union(dict2.keys()):
        full_path = f"{path}.{key}" if path else key
        if key not in dict1:
            print(f"{full_path} only in dict2")
            continue
        if key not in dict2:
            print(f"{full_path} only in dict1")
            continue

        val1 = dict1[key]
        val2 = dict2[key]
        if isinstance(val1, dict) and isinstance(val2, dict) and "value" in val1 and "value" in val2:
            atol = val2.get("atol", 1e-5)
            rtol = val2.get("rtol", 1e-5)
            val1 = val1["value"]
            val2 = val2["value"]
            if isinstance(val1, np.ndarray) and isinstance(val2, np.ndarray):
                if val1.dtype.kind in "biu" and val2.dtype.kind in "biu":
                    same = np.array_equal(val1, val2)
                else:
                    same = val1.shape == val2.shape and np.allclose(val1, val2, rtol=rtol, atol=atol)
                if not same:
                    print(f"Difference at {full_path}: arrays not equal")
            elif isinstance(val1, float) or isinstance(val2, float):
                same = bool(np.isclose(val1, val2, rtol=rtol, atol=atol))
                if not same:
                    print(f"Difference at {full_path}: {val1} (old) != {val2} (new)")
            else:
                same = val1 == val2
                if not same:
                    print(f"Difference at {full_path}: {val1} (old) != {val2} (new)")
            if pytest_mode:
                assert same, full_path
            all_pass = all_pass and same
        elif isinstance(val1, dict) and isinstance(val2, dict):
            all_pass = compare_nested_dicts(val1, val2, path=full_path, pytest_mode=pytest_mode) and all_pass
    return all_pass

def record(fields, this_file_prefix):
    with open(make_file_path_with_timestamp(this_file_prefix+"_result", ".pkl"), "wb") as f:
        pickle.dump(fields, f)

def run_record_or_test(result, this_file_prefix=None, pytest_mode=False):
    this_time_dict = get_fields(result, prefix=this_file_prefix)
    match get_mode():
        case "record":
            record(this_time_dict, this_file_prefix)
        case "test":
            filepath = find_latest_pickle(this_file_prefix+"_result")
            if filepath is None: # first run becomes the baseline
                print(f"No baseline for {this_file_prefix}, recording one")
                record(this_time_dict, this_file_prefix)
                return True
            with open(filepath, "rb") as f:
                last_time_dict = pickle.load(f)
            all_pass = compare_nested_dicts(last_time_dict, this_time_dict, pytest_mode=pytest_mode)
            if all_pass:
                print(this_file_prefix + " all pass!")
            return all_pass
    return True
