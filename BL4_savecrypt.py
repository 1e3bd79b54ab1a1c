# Borderlands 4 savefile codec. Parallel to the BL1/2/3 readers, but much
# simpler on the outside: a .sav file is YAML, zlib-compressed, with a short
# trailer stuck on the end, PKCS7 padded, and then AES-ECB encrypted with a
# key derived from the player's Steam or Epic ID.
# See https://github.com/glacierpiece/borderlands-4-save-utlity for the
# original reverse engineering.
import logging
import re
import struct
import zlib
from Crypto.Cipher import AES # ImportError? pip install pycryptodome

log = logging.getLogger(__name__)

BASE_KEY = bytes((
	0x35, 0xEC, 0x33, 0x77, 0xF3, 0x5D, 0xB0, 0xEA,
	0xBE, 0x6B, 0x83, 0x11, 0x54, 0x03, 0xEB, 0xFB,
	0x27, 0x25, 0x64, 0x2E, 0xD5, 0x49, 0x06, 0x29,
	0x05, 0x78, 0xBD, 0x60, 0xBA, 0x4A, 0xA7, 0x87,
))
BLOCK_SIZE = 16
ZLIB_MAGIC = 0x78
# Bytes to chop off the end before inflating. We always write eight (checksum
# and length), but some files apparently carry only four. Nobody knows which
# ones, so try the short one first and take whichever inflates.
TRAILER_TRIMS = (4, 8)

class SaveFileFormatError(Exception): pass
class InvalidIdentity(SaveFileFormatError, ValueError): pass
class MissingIdentity(InvalidIdentity): pass
class PrimitivesUnavailable(SaveFileFormatError): pass
class DecompressFailure(SaveFileFormatError): pass

class AESECB:
	"""Raw AES in ECB mode. No padding - callers hand over whole blocks."""
	def encrypt(self, key, data): return AES.new(key, AES.MODE_ECB).encrypt(data)
	def decrypt(self, key, data): return AES.new(key, AES.MODE_ECB).decrypt(data)

class Zlib:
	def deflate(self, data, level=9): return zlib.compress(data, level)
	def inflate(self, data): return zlib.decompress(data)

AES_ECB = AESECB()
ZLIB = Zlib()

def is_steam_id(user_id):
	# Steam IDs are all digits and (these days) always at least 17 of them.
	# Anything else, including short numeric IDs, is treated as Epic.
	return re.fullmatch("[0-9]{17,}", user_id) is not None

def user_id_bytes(user_id):
	if is_steam_id(user_id):
		# 64-bit little-endian. Anything bigger just wraps.
		return (int(user_id) & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "little")
	# Epic IDs get used as UTF-16LE, one code unit at a time.
	return user_id.encode("utf-16-le", "surrogatepass")

def derive_key(user_id, base_key=BASE_KEY):
	"""XOR the player's ID over the start of the base key"""
	if not user_id: raise InvalidIdentity("No platform user ID given")
	key = bytearray(base_key)
	for i, b in enumerate(user_id_bytes(user_id)[:len(key)]):
		key[i] ^= b
	return bytes(key)

def pkcs7_pad(buf, block_size=BLOCK_SIZE):
	pad = block_size - len(buf) % block_size # Never zero - aligned data gets a full block
	return bytes(buf) + bytes([pad]) * pad

def pkcs7_unpad(buf):
	"""Strip PKCS7 padding, or warn and hand back the original if it's not valid"""
	pad = buf[-1] if buf else None
	if pad is None or pad > len(buf) or buf[len(buf) - pad:] != bytes([pad]) * pad:
		log.warning("PKCS7 unpad failed, returning padded data")
		return bytes(buf)
	return bytes(buf[:len(buf) - pad])

def adler32(buf):
	return zlib.adler32(buf) & 0xFFFFFFFF

def build_trailer(raw):
	return struct.pack("<II", adler32(raw), len(raw) & 0xFFFFFFFF)

def check_primitives(cipher, compressor):
	if cipher is None or compressor is None:
		raise PrimitivesUnavailable("Required libraries not loaded")

def find_payload(data, compressor=ZLIB):
	"""Chop the trailer off unpadded data and inflate it

	Returns (inflated, trim). The 0x78 check is only a quick filter; the real
	test is whether the candidate actually inflates.
	"""
	for trim in TRAILER_TRIMS:
		candidate = data[:max(len(data) - trim, 0)]
		if not candidate or candidate[0] != ZLIB_MAGIC: continue
		try: return compressor.inflate(candidate), trim
		except (zlib.error, ValueError): pass # Try the next one
	raise DecompressFailure("Zlib decompress failed. Wrong user ID or file format?")

def decrypt_save(data, user_id, cipher=AES_ECB, compressor=ZLIB):
	"""Decrypt the raw bytes of a .sav file into its YAML text"""
	if not user_id: raise MissingIdentity("Please enter platform user ID (Steam or Epic)")
	check_primitives(cipher, compressor)
	key = derive_key(user_id)
	# Some AES implementations hand back a rounded-up buffer. We only want
	# as much as we put in.
	plain = cipher.decrypt(key, bytes(data))[:len(data)]
	raw, trim = find_payload(pkcs7_unpad(plain), compressor)
	log.debug("Successfully decompressed with trim=%d", trim)
	return raw.decode("utf-8", "replace")

def encrypt_save(text, user_id, cipher=AES_ECB, compressor=ZLIB):
	"""Inverse of decrypt_save(); returns the bytes to write out as the .sav"""
	if not user_id: raise MissingIdentity("Please enter platform user ID (Steam or Epic)")
	check_primitives(cipher, compressor)
	raw = text.encode("utf-8")
	packed = compressor.deflate(raw, 9) + build_trailer(raw)
	return cipher.encrypt(derive_key(user_id), pkcs7_pad(packed))
