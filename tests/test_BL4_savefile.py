import pytest
from BL4_savecrypt import encrypt_save, decrypt_save
from BL4_savefile import main, guess_user_id, save_dir, STEAM_APPID

STEAM_ID = "76561198012345678"
TEXT = "state:\n  currencies:\n    cash: 1234\r\n"

@pytest.fixture(autouse=True)
def no_env_user(monkeypatch):
	monkeypatch.delenv("BL4_USER_ID", raising=False)

def test_decrypt_encrypt(tmp_path, capsys):
	sav = tmp_path / "1.sav"
	sav.write_bytes(encrypt_save(TEXT, STEAM_ID))
	assert main(["--user-id", STEAM_ID, "decrypt", str(sav)]) == 0
	yaml = tmp_path / "1.yaml"
	assert yaml.read_bytes() == TEXT.encode("utf-8")
	out = tmp_path / "2.sav"
	assert main(["--user-id", STEAM_ID, "encrypt", str(yaml), "-o", str(out)]) == 0
	assert decrypt_save(out.read_bytes(), STEAM_ID) == TEXT
	assert "Encrypted" in capsys.readouterr().out

def test_user_id_from_environment(tmp_path, monkeypatch):
	monkeypatch.setenv("BL4_USER_ID", STEAM_ID)
	sav = tmp_path / "1.sav"
	sav.write_bytes(encrypt_save(TEXT, STEAM_ID))
	assert main(["decrypt", str(sav), "-o", str(tmp_path / "out.yaml")]) == 0

def test_user_id_from_folder(tmp_path):
	client = tmp_path / "SaveGames" / STEAM_ID / "Profiles" / "client"
	client.mkdir(parents=True)
	sav = client / "1.sav"
	sav.write_bytes(encrypt_save(TEXT, STEAM_ID))
	assert guess_user_id(sav) == STEAM_ID
	assert main(["decrypt", str(sav)]) == 0
	assert (client / "1.yaml").exists()

def test_no_user_id(tmp_path, capsys):
	sav = tmp_path / "1.sav"
	sav.write_bytes(bytes(32))
	assert guess_user_id(sav) is None
	assert main(["decrypt", str(sav)]) == 1
	assert "user ID" in capsys.readouterr().out

def test_wrong_user_id(tmp_path, capsys):
	sav = tmp_path / "1.sav"
	sav.write_bytes(encrypt_save(TEXT * 5, STEAM_ID))
	assert main(["--user-id", "SomeEpicUser", "decrypt", str(sav)]) == 1
	assert "Wrong user ID" in capsys.readouterr().out
	assert not (tmp_path / "1.yaml").exists()

def test_refuses_overwrite(tmp_path, capsys):
	yaml = tmp_path / "1.yaml"
	yaml.write_text("a: b\n")
	out = tmp_path / "1.sav"
	out.write_bytes(b"original")
	assert main(["--user-id", STEAM_ID, "encrypt", str(yaml)]) == 1
	assert out.read_bytes() == b"original"
	assert "--force" in capsys.readouterr().out
	assert main(["--user-id", STEAM_ID, "encrypt", str(yaml), "--force"]) == 0
	assert decrypt_save(out.read_bytes(), STEAM_ID) == "a: b\n"

def test_backup(tmp_path):
	yaml = tmp_path / "1.yaml"
	yaml.write_text("a: b\n")
	out = tmp_path / "1.sav"
	out.write_bytes(b"original")
	assert main(["--user-id", STEAM_ID, "encrypt", str(yaml), "--backup"]) == 0
	assert (tmp_path / "1.sav.bak").read_bytes() == b"original"
	assert decrypt_save(out.read_bytes(), STEAM_ID) == "a: b\n"

def test_verify(tmp_path, capsys):
	sav = tmp_path / "1.sav"
	sav.write_bytes(encrypt_save(TEXT, STEAM_ID))
	assert main(["--user-id", STEAM_ID, "verify", str(sav)]) == 0
	assert "SUCCESS" in capsys.readouterr().out

def make_steam(tmp_path, *users):
	savedir = save_dir(tmp_path)
	for user in users:
		client = savedir / user / "Profiles" / "client"
		client.mkdir(parents=True)
		(client / "1.sav").write_bytes(bytes(16))
		(client / "profile.sav").write_bytes(bytes(16))
	return savedir

def test_save_dir(tmp_path):
	savedir = save_dir(tmp_path)
	assert STEAM_APPID in savedir.parts
	assert savedir.name == "SaveGames"

def test_list_one_user(tmp_path, capsys):
	make_steam(tmp_path, STEAM_ID)
	assert main(["list", "--steam-dir", str(tmp_path)]) == 0
	out = capsys.readouterr().out
	assert "--user-id " + STEAM_ID in out
	assert "profile.sav" in out

def test_list_many_users(tmp_path, capsys):
	make_steam(tmp_path, STEAM_ID, "76561198087654321")
	assert main(["list", "--steam-dir", str(tmp_path)]) == 0
	out = capsys.readouterr().out
	assert "Please select" in out
	assert "--steam-user 76561198087654321" in out
	assert main(["list", "--steam-dir", str(tmp_path), "--steam-user", "all", "--files", "1.sav"]) == 0
	out = capsys.readouterr().out
	assert out.count("1.sav") == 2 and "profile.sav" not in out

def test_list_missing(tmp_path, capsys):
	assert main(["list", "--dir", str(tmp_path / "nowhere")]) == 1
	make_steam(tmp_path, STEAM_ID)
	assert main(["list", "--steam-dir", str(tmp_path), "--steam-user", "nobody"]) == 1
	assert "User not found" in capsys.readouterr().out

def test_user_id_after_subcommand(tmp_path):
	sav = tmp_path / "1.sav"
	sav.write_bytes(encrypt_save(TEXT, STEAM_ID))
	assert main(["decrypt", str(sav), "--user-id", STEAM_ID]) == 0
	assert main(["verify", str(sav), "--user-id", STEAM_ID]) == 0
	# Given up front only, the subcommand mustn't wipe it out
	assert main(["--user-id", STEAM_ID, "verify", str(sav)]) == 0

def test_truncated_save(tmp_path, capsys):
	sav = tmp_path / "1.sav"
	sav.write_bytes(encrypt_save(TEXT, STEAM_ID)[:-1])
	assert main(["--user-id", STEAM_ID, "decrypt", str(sav)]) == 1
	assert "Invalid input" in capsys.readouterr().out
	assert not (tmp_path / "1.yaml").exists()

def test_yaml_not_utf8(tmp_path, capsys):
	yaml = tmp_path / "1.yaml"
	yaml.write_bytes(b"name: \xff\n")
	assert main(["--user-id", STEAM_ID, "encrypt", str(yaml)]) == 1
	assert "Invalid input" in capsys.readouterr().out
	assert not (tmp_path / "1.sav").exists()
