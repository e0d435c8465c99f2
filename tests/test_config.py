from src.config import ALLOWED_FILE_TYPES, MAX_FILE_SIZE, format_file_size, load_app_config


def test_params_file_overrides_defaults(tmp_path):
    params_file = tmp_path / "params.yaml"
    params_file.write_text("reward_config:\n  new_user_bonus: 5\nllm_config:\n  temperature: 0.1\n")

    params = load_app_config(str(params_file))

    assert params['reward_config'] == {'tokens_per_analysis': 10, 'new_user_bonus': 5}
    assert params['llm_config']['temperature'] == 0.1
    assert params['llm_config']['model_name'] == 'gemini-2.5-flash'
    assert params['upload_config']['allowed_file_types'] == list(ALLOWED_FILE_TYPES)


def test_missing_params_file_falls_back(tmp_path):
    params = load_app_config(str(tmp_path / "missing.yaml"))

    assert params['upload_config']['max_file_size'] == MAX_FILE_SIZE


def test_database_url_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv('DATABASE_URL', 'sqlite:///other.db')

    params = load_app_config(str(tmp_path / "missing.yaml"))

    assert params['database_config']['url'] == 'sqlite:///other.db'


def test_format_file_size():
    assert format_file_size(MAX_FILE_SIZE) == "20MB"
    assert format_file_size(1536 * 1024) == "1.50MB"
