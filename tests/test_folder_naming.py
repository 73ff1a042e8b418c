import os

from utils.folder_naming import extract_project_name, get_build_dir, get_output_dir, slugify


def test_slugify():
    assert slugify("  Hello, World!  ") == "hello_world"
    assert slugify("a--b__c d") == "a_b_c_d"


def test_extract_project_name_drops_filler():
    assert extract_project_name("Build me a simple counter with a reset button") == "counter_reset_button"
    assert extract_project_name("make an app") == "project"


def test_output_dir_per_kind(tmp_path):
    gui = get_output_dir("gui", "a counter", base_dir=str(tmp_path))
    console = get_output_dir("console", "a counter", base_dir=str(tmp_path))
    assert gui == os.path.join(str(tmp_path), "gui_apps", "counter")
    assert console == os.path.join(str(tmp_path), "console_apps", "counter")


def test_output_dir_dedup(tmp_path):
    first = get_output_dir("gui", "a counter", base_dir=str(tmp_path))
    os.makedirs(first)
    assert get_output_dir("gui", "a counter", base_dir=str(tmp_path)) == first + "_2"


def test_build_dir_is_fresh(tmp_path):
    root = str(tmp_path / "builds")
    a = get_build_dir(root)
    b = get_build_dir(root)
    assert a != b
    assert os.path.dirname(a) == root
    assert os.path.basename(a).startswith("forgeloop_build_")


def test_output_dir_unknown_kind_defaults_to_gui(tmp_path):
    path = get_output_dir("web", "notes", base_dir=str(tmp_path))
    assert "gui_apps" in path
