# Upload a .sav, get YAML back; upload YAML, get a .sav back.
# Run this and point a browser (or curl) at it:
#   curl -F file=@1.sav -F userid=76561198012345678 localhost:5000/decrypt
import os
import pathlib
from flask import Flask, request, Response # ImportError? Try "pip install flask".
from werkzeug.utils import secure_filename
from BL4_savecrypt import decrypt_save, encrypt_save, SaveFileFormatError
app = Flask(__name__)

def user_id():
	return request.form.get("userid") or os.environ.get("BL4_USER_ID", "")

@app.errorhandler(SaveFileFormatError)
@app.errorhandler(ValueError) # Truncated saves, YAML that isn't UTF-8
def format_error(e):
	return Response(str(e) + "\n", status=400, mimetype="text/plain")

@app.route("/decrypt", methods=["POST"])
def decrypt():
	f = request.files.get("file")
	if f is None: return Response("No file uploaded\n", status=400, mimetype="text/plain")
	text = decrypt_save(f.read(), user_id())
	return Response(text, mimetype="text/yaml")

@app.route("/encrypt", methods=["POST"])
def encrypt():
	f = request.files.get("file")
	if f is not None:
		text = f.read().decode("utf-8")
		name = pathlib.PurePath(secure_filename(f.filename or "") or "save.yaml").with_suffix(".sav").name
	elif "yaml" in request.form:
		text, name = request.form["yaml"], "save.sav"
	else: return Response("No file uploaded\n", status=400, mimetype="text/plain")
	data = encrypt_save(text, user_id())
	return Response(data, mimetype="application/octet-stream",
		headers={"Content-Disposition": 'attachment; filename="%s"' % name})

if __name__ == "__main__":
	import logging
	logging.basicConfig(level=logging.DEBUG)
	app.run(host='0.0.0.0')
