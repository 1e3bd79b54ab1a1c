# Command-line front end for BL4_savecrypt: turn .sav files into YAML you can
# edit, and put them back again. Knows where Proton keeps the saves, so if
# you only have one Steam user it should Just Work.
import argparse
import logging
import os
import pathlib
import shutil
from BL4_savecrypt import decrypt_save, encrypt_save, SaveFileFormatError

STEAM_APPID = "1285190"
# Below the compatdata prefix. This part shouldn't change.
SAVEGAMES = "pfx/drive_c/users/steamuser/Documents/My Games/Borderlands 4/Saved/SaveGames"
# Subcommands take --user-id too, with SUPPRESS so they don't reset the global one
USER_ID_HELP = "Steam or Epic user ID (default: $BL4_USER_ID, or guessed from the save's folder)"

def save_dir(steam_dir):
	return pathlib.Path(steam_dir).expanduser() / "steamapps/compatdata" / STEAM_APPID / SAVEGAMES

def guess_user_id(path):
	"""The folder directly under SaveGames is named for the platform ID"""
	for parent in pathlib.Path(path).absolute().parents:
		if parent.parent.name == "SaveGames": return parent.name
	return None

def get_user_id(args, path=None):
	user_id = args.user_id or os.environ.get("BL4_USER_ID") or (path and guess_user_id(path))
	if not user_id: raise SaveFileFormatError("Please enter platform user ID (Steam or Epic) with --user-id or BL4_USER_ID")
	return user_id

def user_dirs(savedir, steam_user):
	if steam_user in ("auto", "all"):
		return sorted(fn for fn in savedir.iterdir() if fn.is_dir())
	return [savedir / steam_user]

def output_ok(path, args):
	if not path.exists(): return True
	if getattr(args, "backup", False):
		shutil.copyfile(path, str(path) + ".bak")
		return True
	if args.force: return True
	print("Output file %s exists (use --force to overwrite)" % path)
	return False

def cmd_decrypt(args):
	src = pathlib.Path(args.save)
	dest = pathlib.Path(args.output or src.with_suffix(".yaml"))
	text = decrypt_save(src.read_bytes(), get_user_id(args, src))
	if not output_ok(dest, args): return 1
	# Keep the game's line endings exactly as they were
	with open(dest, "w", encoding="utf-8", newline="") as f: f.write(text)
	print("Decrypted %s -> %s" % (src, dest))
	return 0

def cmd_encrypt(args):
	src = pathlib.Path(args.yaml)
	dest = pathlib.Path(args.output or src.with_suffix(".sav"))
	with open(src, encoding="utf-8", newline="") as f: text = f.read()
	data = encrypt_save(text, get_user_id(args, dest))
	if not output_ok(dest, args): return 1
	dest.write_bytes(data)
	print("Encrypted %s -> %s" % (src, dest))
	return 0

def cmd_verify(args):
	# The game's compressor won't necessarily give the same bytes as ours, so
	# there's no point comparing the files. Check that the text survives.
	src = pathlib.Path(args.save)
	user_id = get_user_id(args, src)
	text = decrypt_save(src.read_bytes(), user_id)
	if decrypt_save(encrypt_save(text, user_id), user_id) != text:
		print("Imperfect reconstruction:", src)
		return 1
	print("SUCCESS")
	return 0

def cmd_list(args):
	savedir = pathlib.Path(args.dir).expanduser() if args.dir else save_dir(args.steam_dir)
	if not savedir.is_dir():
		print("No save directory at", savedir)
		return 1
	names = user_dirs(savedir, args.steam_user)
	if args.steam_user == "auto" and len(names) > 1:
		print("Multiple users have data here. Please select:")
		for fn in names:
			print("--steam-user", fn.name)
		return 0
	for fn in names:
		if not fn.is_dir():
			print("User not found:", fn.name)
			return 1
		print("--user-id", fn.name)
		for save in sorted(fn.rglob(args.files)):
			print("\t", save.relative_to(fn))
	return 0

def main(args=None):
	parser = argparse.ArgumentParser(description="Borderlands 4 save file decrypter/encrypter")
	parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
	parser.add_argument("--user-id", help=USER_ID_HELP)
	sub = parser.add_subparsers(dest="command", required=True)
	p = sub.add_parser("decrypt", help="Decrypt a .sav file to YAML")
	p.add_argument("save")
	p.add_argument("--user-id", help=USER_ID_HELP, default=argparse.SUPPRESS)
	p.add_argument("-o", "--output", help="Output YAML file (default: next to the save)")
	p.add_argument("--force", action="store_true", help="Overwrite existing output")
	p.set_defaults(func=cmd_decrypt)
	p = sub.add_parser("encrypt", help="Encrypt YAML back into a .sav file")
	p.add_argument("yaml")
	p.add_argument("--user-id", help=USER_ID_HELP, default=argparse.SUPPRESS)
	p.add_argument("-o", "--output", help="Output save file (default: next to the YAML)")
	p.add_argument("--force", action="store_true", help="Overwrite existing output")
	p.add_argument("--backup", action="store_true", help="Copy an existing output to .bak, then overwrite")
	p.set_defaults(func=cmd_encrypt)
	p = sub.add_parser("verify", help="Check that a save survives decrypt/encrypt")
	p.add_argument("save")
	p.add_argument("--user-id", help=USER_ID_HELP, default=argparse.SUPPRESS)
	p.set_defaults(func=cmd_verify)
	p = sub.add_parser("list", help="List save files found under Steam")
	p.add_argument("--steam-dir", help="Path to Steam library", default="~/.steam/steam")
	p.add_argument("--steam-user", help="User ID, or all or auto", default="auto")
	p.add_argument("--dir", help="Specify the SaveGames directory explicitly (ignores --steam-dir)")
	p.add_argument("--files", help="File name pattern", default="*.sav")
	p.set_defaults(func=cmd_list)
	args = parser.parse_args(args)
	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
	try: return args.func(args)
	except SaveFileFormatError as e:
		print(e.args[0])
		return 1
	except ValueError as e:
		# Truncated saves (not a whole number of AES blocks), YAML that isn't UTF-8
		print("Invalid input:", e)
		return 1

if __name__ == "__main__": raise SystemExit(main())
