from flask import Flask, request, jsonify, send_file, g
import json
import logging
import sqlite3
from contextlib import closing
import uuid
import os
from board import Grid, InputError
from tour import TourSolver, SearchAborted, is_valid_tour, random_start

app = Flask(__name__)
app.config.from_mapping(
    DATABASE='chess.db',
    DOWNLOAD_DIR='downloads',
    MAX_BOARD_SIZE=30,
    SEARCH_BUDGET=2_000_000,
)
app.config.from_prefixed_env('KNIGHT_TOUR') # 环境变量覆盖，如 KNIGHT_TOUR_DATABASE


def get_db(): # 打开数据库，首次使用时建表
    conn = sqlite3.connect(app.config['DATABASE'])
    conn.execute('''
        CREATE TABLE IF NOT EXISTS saved_games
        (id INTEGER PRIMARY KEY AUTOINCREMENT,
         uid TEXT,
         n INTEGER,
         path TEXT,
         initX INTEGER,
         initY INTEGER,
         save_loc INTEGER)
    ''')
    return conn


def parse_board_size(value):
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InputError(f'棋盘大小必须为正整数: {value!r}')
    if value > app.config['MAX_BOARD_SIZE']:
        raise InputError(f'棋盘大小不能超过{app.config["MAX_BOARD_SIZE"]}')
    return value


def parse_cell(value):
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise InputError(f'坐标格式错误: {value!r}')
    return value[0], value[1]


def parse_position(value, n): # 坐标必须是棋盘内的整数
    row, col = parse_cell(value)
    for v in (row, col):
        if isinstance(v, bool) or not isinstance(v, int):
            raise InputError(f'坐标必须为整数: {value!r}')
    if not (0 <= row < n and 0 <= col < n):
        raise InputError(f'坐标({row}, {col})不在{n}x{n}棋盘内')
    return row, col


def parse_game(data): # 校验棋局：棋盘大小、路径、起点
    n = parse_board_size(data.get('n'))
    path = data.get('path') or []
    init_pos = parse_position(data.get('init_pos'), n)
    if not is_valid_tour(path, n, complete=False):
        raise InputError('路径不是合法的马步序列')
    if path and tuple(path[0]) != init_pos:
        raise InputError(f'起点{list(init_pos)}与路径第一步{path[0]}不一致')
    return n, path, init_pos


@app.errorhandler(InputError)
def handle_input_error(e): # 输入错误统一返回 400
    app.logger.warning('invalid input: %s', e)
    return jsonify({'success': False, 'message': str(e)}), 400


@app.before_request
def load_user():
    g.uid = request.cookies.get('user')
    g.new_uid = None
    if not g.uid:
        g.uid = g.new_uid = str(uuid.uuid4())


@app.after_request
def set_user_cookie(response): # 新用户下发标识
    new_uid = g.get('new_uid')
    if new_uid:
        response.set_cookie('user', new_uid)
    return response


@app.route('/api/solve', methods=['POST'])
def solve(): # 从指定起点求解完整路径
    data = request.get_json(silent=True) or {}
    n = parse_board_size(data.get('n'))
    row, col = parse_cell(data.get('start', [0, 0]))

    solver = TourSolver(Grid(n), max_steps=app.config['SEARCH_BUDGET'])
    try:
        success = solver.solve(row, col)
    except SearchAborted as e:
        app.logger.info('solve %dx%d from (%d, %d) aborted: %s', n, n, row, col, e)
        return jsonify({
            'success': False,
            'aborted': True,
            'path': [],
            'steps': e.steps,
            'message': f'搜索超过{e.steps}步，已放弃'
        })

    return jsonify({
        'success': success,
        'aborted': False,
        'path': [list(cell) for cell in solver.path],
        'steps': solver.steps,
        'message': f'共{len(solver.path)}步' if success else '该起点找不到完整路径，请换一个起点'
    })


@app.route('/api/random-start', methods=['GET'])
def random_start_cell(): # 随机起点
    raw = request.args.get('n', '8')
    try:
        n = int(raw)
    except ValueError:
        raise InputError(f'棋盘大小必须为正整数: {raw!r}')
    n = parse_board_size(n)
    return jsonify({
        'success': True,
        'start': list(random_start(n))
    })


@app.route('/api/save', methods=['POST'])
def save_game(): # 保存棋局
    data = request.get_json(silent=True) or {}
    n, path, init_pos = parse_game(data)
    save_loc = data.get('save_loc')
    if isinstance(save_loc, bool) or not isinstance(save_loc, int):
        raise InputError(f'保存位必须为整数: {save_loc!r}')

    with closing(get_db()) as conn:
        c = conn.cursor()

        # 检查是否已存在该保存位
        c.execute('SELECT id FROM saved_games WHERE uid = ? AND save_loc = ?', (g.uid, save_loc))
        existing = c.fetchone()

        if existing:
            c.execute('UPDATE saved_games SET n=?, path=?, initX=?, initY=? WHERE uid=? AND save_loc=?',
                      (n, json.dumps(path), init_pos[0], init_pos[1], g.uid, save_loc))
        else:
            c.execute('INSERT INTO saved_games (uid, n, path, initX, initY, save_loc) VALUES (?, ?, ?, ?, ?, ?)',
                      (g.uid, n, json.dumps(path), init_pos[0], init_pos[1], save_loc))

        conn.commit()
    app.logger.debug('saved game for %s at slot %s', g.uid, save_loc)

    return jsonify({
        'success': True,
        'message': f'棋局已保存到位置{save_loc}'
    })


@app.route('/api/recall', methods=['GET'])
def recall_game(): # 从指定保存位恢复棋局
    save_loc = request.args.get('save_loc', type=int)

    with closing(get_db()) as conn:
        c = conn.cursor()
        c.execute('SELECT n, path, initX, initY FROM saved_games WHERE uid = ? AND save_loc = ?', (g.uid, save_loc))
        result = c.fetchone()

    if result:
        n, path_json, initX, initY = result
        return jsonify({
            'success': True,
            'n': n,
            'path': json.loads(path_json),
            'init_pos': [initX, initY]
        })
    else:
        return jsonify({
            'success': False,
            'message': f'保存位{save_loc}没有保存的棋局'
        })


@app.route('/api/download', methods=['POST'])
def download_game(): # 下载当前棋局为JSON文件
    data = request.get_json(silent=True)
    if data is None:
        raise InputError('请求体不是JSON')

    filename = f"knight_tour_{g.uid}.json"
    download_dir = os.path.abspath(app.config['DOWNLOAD_DIR'])
    filepath = os.path.join(download_dir, filename)

    os.makedirs(download_dir, exist_ok=True)

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return send_file(filepath, as_attachment=True, download_name="马踏棋盘.json")


@app.route('/api/import', methods=['POST'])
def import_game(): # 上传棋局JSON文件
    if 'file' not in request.files:
        return jsonify({'success': False, 'message': '没有上传文件'})

    file = request.files['file']
    if file.filename == '':
        return jsonify({'success': False, 'message': '没有选择文件'})

    try:
        data = json.load(file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return jsonify({'success': False, 'message': f'文件解析失败: {str(e)}'})

    if not isinstance(data, dict):
        return jsonify({'success': False, 'message': '文件内容格式错误'})

    n, path, init_pos = parse_game(data)

    return jsonify({
        'success': True,
        'n': n,
        'path': path,
        'init_pos': list(init_pos),
        'complete': is_valid_tour(path, n),
        'message': '棋局导入成功'
    })


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s:%(name)s:%(message)s")
    app.run(debug=True, port=5000)
